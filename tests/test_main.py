import pytest
from fastapi.testclient import TestClient

import main

from conftest import FakeClient


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(main, "FHIRClient", lambda session, timeout=None: FakeClient(session=session))
    return TestClient(main.app)


def test_index_without_launch_runs_dev_mode(client):
    resp = client.get("/")
    assert resp.status_code == 200

    html = resp.text
    assert "sandbox dev mode" in html
    assert "<dt>Name</dt><dd>Jane Q Doe</dd>" in html
    assert 'Highcharts.chart("lab-chart"' in html
    assert html.count("<tr><td>") == 4


def test_index_with_stale_state_shows_launch_error(client):
    resp = client.get("/", params={"state": "stale", "code": "c"})
    assert resp.status_code == 200
    assert "Launch error: No launch state found" in resp.text
    assert "Highcharts.chart" not in resp.text


def test_launch_requires_iss(client):
    resp = client.get("/launch", follow_redirects=False)
    assert resp.status_code == 400


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "lab": "http://loinc.org|2093-3"}


def test_launch_refuses_untrusted_issuer(client):
    resp = client.get("/launch", params={"iss": "http://169.254.169.254/latest", "launch": "x"},
                      follow_redirects=False)
    assert resp.status_code == 403
    assert "not an allowed FHIR server" in resp.text

import json
import sys
from pathlib import Path

import pytest
import requests

# Ensure project root is on sys.path so top-level modules import when running pytest from repo root
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from config import DashboardConfig  # noqa: E402
from output.view import DashboardView  # noqa: E402
from smart.errors import FHIRRequestError  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name):
    with open(FIXTURES_DIR / name, "r") as f:
        return json.load(f)


class FakeResponse:
    def __init__(self, body=None, status_code=200, reason="OK"):
        self.body = body
        self.status_code = status_code
        self.reason = reason

    def json(self):
        if self.body is None:
            raise ValueError("No JSON object could be decoded")
        return self.body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} {self.reason}")


class FakeHttp:
    """Stands in for requests.Session: canned responses by URL"""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    def _respond(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if url not in self.routes:
            return FakeResponse(status_code=404, reason="Not Found")
        result = self.routes[url]
        if isinstance(result, Exception):
            raise result
        return result

    def get(self, url, **kwargs):
        return self._respond("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._respond("POST", url, **kwargs)


class FakeClient:
    """Stands in for FHIRClient in loader tests"""

    def __init__(self, session=None, timeout=None, patient=None, observations=None, error=None,
                 patient_id="smart-1288992"):
        self.session = session
        self.timeout = timeout
        self.patient_id = session.patient_id if session is not None else patient_id
        self.patient = patient if patient is not None else load_fixture("patient.json")
        self.observations = observations
        self.error = error
        self.calls = []

    def read(self, resource_type, resource_id):
        self.calls.append(("read", resource_type, resource_id))
        if self.error:
            raise self.error
        return self.patient

    def read_current_patient(self):
        self.calls.append(("read_current_patient",))
        if self.error:
            raise self.error
        return self.patient

    def request(self, query, page_limit=1, flat=False):
        self.calls.append(("request", query, page_limit, flat))
        if self.error:
            raise self.error
        if self.observations is None:
            return [e["resource"] for e in load_fixture("cholesterol_bundle.json")["entry"]]
        return self.observations


@pytest.fixture
def config():
    return DashboardConfig()


@pytest.fixture
def view():
    return DashboardView()


@pytest.fixture
def observations():
    return [e["resource"] for e in load_fixture("cholesterol_bundle.json")["entry"]]


@pytest.fixture
def fhir_error():
    return FHIRRequestError("500 boom", status_code=500)

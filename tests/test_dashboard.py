import asyncio

from dashboard import DEV_MODE_STATUS, build_dashboard, run_dev_dashboard
from output.chart import LAB_CHART_ID
from smart.launch import LaunchStore

from conftest import FakeClient


class RecordingFactory:
    def __init__(self, **kwargs):
        self.kwargs = kwargs
        self.clients = []

    def __call__(self, session, timeout=None):
        client = FakeClient(session=session, timeout=timeout, **self.kwargs)
        self.clients.append(client)
        return client


def test_fallback_session_fires_both_loaders(config):
    factory = RecordingFactory()
    view = asyncio.run(build_dashboard({}, config, LaunchStore(), client_factory=factory))

    client = factory.clients[0]
    assert client.session.server_url == "https://r3.smarthealthit.org"
    assert client.session.patient_id == "smart-1288992"
    assert ("read_current_patient",) in client.calls
    assert any(call[0] == "request" for call in client.calls)

    assert view.status == DEV_MODE_STATUS
    assert view.patient.name == "Jane Q Doe"
    assert len(view.lab_rows) == 4


def test_launch_error_runs_no_loader(config):
    factory = RecordingFactory()
    view = asyncio.run(build_dashboard({"state": "stale"}, config, LaunchStore(), client_factory=factory))

    assert factory.clients == []
    assert view.status == "Launch error: No launch state found for 'stale'"
    assert view.patient is None
    assert view.charts == {}


def test_one_loader_failing_leaves_the_other(config, fhir_error):
    class PatientFails(FakeClient):
        def read_current_patient(self):
            raise fhir_error

    view = asyncio.run(build_dashboard(
        {}, config, LaunchStore(), client_factory=lambda s, timeout=None: PatientFails(session=s),
    ))
    assert view.patient_error == "Could not load patient details."
    assert len(view.lab_rows) == 4
    assert view.charts[LAB_CHART_ID]["series"]


def test_unexpected_lab_failure_still_renders_placeholder(config):
    class Broken(FakeClient):
        def request(self, query, page_limit=1, flat=False):
            raise RuntimeError("bug")

    view = asyncio.run(build_dashboard(
        {}, config, LaunchStore(), client_factory=lambda s, timeout=None: Broken(session=s),
    ))
    assert view.patient.name == "Jane Q Doe"
    assert view.lab_placeholder == "Error loading labs."
    assert view.charts[LAB_CHART_ID]["series"] == []
    assert "Error loading cholesterol labs: bug" in view.status


def test_dev_dashboard_with_explicit_patient(config):
    factory = RecordingFactory()
    view = run_dev_dashboard(config, patient_id="p-9", client_factory=factory)

    calls = factory.clients[0].calls
    assert ("read", "Patient", "p-9") in calls
    assert any("patient=p-9" in call[1] for call in calls if call[0] == "request")
    assert view.to_dict()["patient"]["Name"] == "Jane Q Doe"

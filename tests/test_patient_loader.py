from loaders.patient_loader import PATIENT_LOAD_ERROR, PATIENT_UNAVAILABLE, load_patient

from conftest import FakeClient


def test_explicit_patient_id_reads_by_id(view):
    client = FakeClient(patient_id=None)
    patient = load_patient(client, view, patient_id="p-42")

    assert client.calls == [("read", "Patient", "p-42")]
    assert view.patient == patient
    assert patient.name == "Jane Q Doe"


def test_session_patient_is_read_when_no_explicit_id(view):
    client = FakeClient()
    load_patient(client, view)

    assert client.calls == [("read_current_patient",)]
    assert view.patient.display_id == "smart-1288992"


def test_no_patient_context_skips_request(view):
    client = FakeClient(patient_id=None)
    assert load_patient(client, view) is None

    assert client.calls == []
    assert view.patient is None
    assert view.patient_error == PATIENT_UNAVAILABLE


def test_fetch_failure_shows_placeholder(view, fhir_error):
    client = FakeClient(error=fhir_error)
    assert load_patient(client, view) is None
    assert view.patient_error == PATIENT_LOAD_ERROR


def test_malformed_patient_shows_placeholder(view):
    client = FakeClient(patient={"resourceType": "Patient", "id": "p1", "birthDate": 19800501})
    assert load_patient(client, view) is None
    assert view.patient is None
    assert view.patient_error == PATIENT_LOAD_ERROR

# loaders/patient_loader.py
import logging
from typing import Optional

from models.patient import PatientRecord

logger = logging.getLogger(__name__)

PATIENT_UNAVAILABLE = "No patient in context."
PATIENT_LOAD_ERROR = "Could not load patient details."


def load_patient(client, view, patient_id: Optional[str] = None) -> Optional[PatientRecord]:
    """
    Fetch one Patient and show it in the patient panel.
    An explicit id wins over the session's current patient.
    Failures end up in the panel, never raised.
    """
    if not patient_id and not client.patient_id:
        logger.warning("No patient id and no current patient, skipping patient fetch")
        view.show_patient_error(PATIENT_UNAVAILABLE)
        return None

    try:
        if patient_id:
            resource = client.read("Patient", patient_id)
        else:
            resource = client.read_current_patient()
        patient = PatientRecord.from_resource(resource)
    except Exception as e:
        # malformed payloads land here as well as transport failures
        logger.error(f"Failed to load patient: {e}")
        view.show_patient_error(PATIENT_LOAD_ERROR)
        return None

    view.show_patient(patient)
    logger.info(f"Loaded patient {patient.display_id}")
    return patient

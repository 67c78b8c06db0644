# output/view.py
from typing import Dict, List, Optional

from models.observation import LabObservation
from models.patient import PatientRecord

STATUS_SEPARATOR = " • "


class DashboardView:
    """
    What the loaders render, kept apart from any page technology.
    The patient and lab loaders write disjoint regions; the status line
    is append-only, so both may write from their own worker threads.
    """

    def __init__(self):
        self._status = ""
        self._notes: List[str] = []
        self.patient: Optional[PatientRecord] = None
        self.patient_error: Optional[str] = None
        self.lab_rows: List[LabObservation] = []
        self.lab_placeholder: Optional[str] = None
        self.charts: Dict[str, Dict] = {}

    @property
    def status(self) -> str:
        return STATUS_SEPARATOR.join([self._status] + self._notes) if self._notes else self._status

    def set_status(self, text: str):
        self._status = text
        self._notes = []

    def append_status(self, note: str):
        self._notes.append(note)

    def show_patient(self, patient: PatientRecord):
        self.patient = patient
        self.patient_error = None

    def show_patient_error(self, message: str):
        self.patient = None
        self.patient_error = message

    def show_lab_rows(self, rows: List[LabObservation]):
        self.lab_rows = list(rows)
        self.lab_placeholder = None

    def show_lab_placeholder(self, message: str):
        self.lab_rows = []
        self.lab_placeholder = message

    def render_chart(self, container_id: str, description: Dict):
        self.charts[container_id] = description

    def to_dict(self) -> Dict:
        return {
            "status": self.status,
            "patient": self.patient.display_fields() if self.patient else None,
            "patient_error": self.patient_error,
            "lab_rows": [row.model_dump() for row in self.lab_rows],
            "lab_placeholder": self.lab_placeholder,
            "charts": self.charts,
        }

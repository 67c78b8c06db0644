# loaders/lab_loader.py
import logging
from typing import List, Optional
from urllib.parse import urlencode

from config import LabTestConfig
from models.observation import ChartSeries, LabObservation
from output.chart import render_chart

logger = logging.getLogger(__name__)

LAB_LOAD_ERROR = "Error loading labs."
NO_PATIENT_ID = "No patient ID."


def build_lab_query(patient_id: str, lab: LabTestConfig) -> str:
    return "Observation?" + urlencode({
        "patient": patient_id,
        "code": lab.coding,
        "_sort": "date",
    })


def parse_observations(resources: List[dict]) -> List[LabObservation]:
    """One row per Observation, however incomplete"""
    return [LabObservation.from_resource(r) for r in resources]


def load_lab_series(client, view, lab: LabTestConfig, page_limit: int = 3,
                    patient_id: Optional[str] = None) -> List[LabObservation]:
    """
    Fetch the lab test's Observations for a patient, oldest first,
    and render them as table rows plus a line chart.
    Returns the rows shown (empty on any failure).
    """
    patient_id = patient_id or client.patient_id
    if not patient_id:
        logger.warning(f"No patient id for {lab.label} lab query")
        view.append_status(f"No patient ID available for {lab.label} labs.")
        view.show_lab_placeholder(NO_PATIENT_ID)
        render_chart(view, [], [], lab)
        return []

    query = build_lab_query(patient_id, lab)
    try:
        resources = client.request(query, page_limit=page_limit, flat=True)
        rows = parse_observations(resources or [])
        series = ChartSeries.from_observations(rows)
    except Exception as e:
        # malformed payloads land here as well as transport failures
        logger.error(f"Failed to load {lab.label} labs: {e}")
        detail = str(e) or e.__class__.__name__
        view.append_status(f"Error loading {lab.label} labs: {detail}")
        view.show_lab_placeholder(LAB_LOAD_ERROR)
        render_chart(view, [], [], lab)
        return []

    if not rows:
        logger.info(f"No {lab.label} results for patient {patient_id}")
        view.append_status(f"No {lab.label} results found for this patient.")
        view.show_lab_placeholder(f"No {lab.label} results.")
        render_chart(view, [], [], lab)
        return []

    view.show_lab_rows(rows)
    render_chart(view, series.dates, series.values, lab)
    logger.info(f"Rendered {len(rows)} {lab.label} rows, {len(series)} chart points")
    return rows

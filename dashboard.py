# dashboard.py
import asyncio
import logging
from typing import Mapping, Optional, Tuple

from config import DashboardConfig
from loaders.lab_loader import load_lab_series
from loaders.patient_loader import load_patient
from models.session import Session
from output.view import DashboardView
from smart.client import FHIRClient
from smart.launch import LaunchStore, complete_launch
from smart.errors import LaunchError, MissingLaunchContext

logger = logging.getLogger(__name__)

DEV_MODE_STATUS = "No SMART launch detected – using sandbox dev mode with a test patient."


def dev_session(config: DashboardConfig, server_url: Optional[str] = None,
                patient_id: Optional[str] = None) -> Session:
    return Session(
        server_url=(server_url or config.dev_server_url).rstrip("/"),
        patient_id=patient_id or config.dev_patient_id,
        dev_mode=True,
    )


def resolve_session(params: Mapping[str, str], config: DashboardConfig, store: LaunchStore,
                    http=None) -> Tuple[Session, str]:
    """
    Returns the session and its status line.
    A page opened without launch state runs against the dev sandbox;
    any other launch failure is raised as LaunchError.
    """
    try:
        session = complete_launch(params, config, store, http=http)
    except MissingLaunchContext as e:
        logger.info(f"{e}, falling back to dev mode on {config.dev_server_url}")
        return dev_session(config), DEV_MODE_STATUS

    return session, f"Connected to FHIR server (SMART): {session.server_url}"


async def load_dashboard(client, view: DashboardView, config: DashboardConfig,
                         patient_id: Optional[str] = None):
    """Run the patient and lab loaders side by side; neither waits on the other"""
    results = await asyncio.gather(
        asyncio.to_thread(load_patient, client, view, patient_id),
        asyncio.to_thread(load_lab_series, client, view, config.lab, config.page_limit, patient_id),
        return_exceptions=True,
    )
    for name, result in zip(("patient", "labs"), results):
        if isinstance(result, Exception):
            logger.error(f"Unexpected failure in {name} loader: {result!r}")
    return view


async def build_dashboard(params: Mapping[str, str], config: DashboardConfig, store: LaunchStore,
                          client_factory=FHIRClient, http=None) -> DashboardView:
    view = DashboardView()
    try:
        session, status = await asyncio.to_thread(resolve_session, params, config, store, http)
    except LaunchError as e:
        logger.error(f"Launch error: {e}")
        view.set_status(f"Launch error: {str(e) or e.__class__.__name__}")
        return view

    view.set_status(status)
    client = client_factory(session, timeout=config.request_timeout)
    return await load_dashboard(client, view, config)


def run_dev_dashboard(config: DashboardConfig, server_url: Optional[str] = None,
                      patient_id: Optional[str] = None, client_factory=FHIRClient) -> DashboardView:
    """Blocking dev-mode run for the CLI and the Streamlit page"""
    session = dev_session(config, server_url=server_url)
    view = DashboardView()
    view.set_status(f"Dev mode: {session.server_url}")
    client = client_factory(session, timeout=config.request_timeout)
    return asyncio.run(load_dashboard(client, view, config, patient_id=patient_id))

# smart/client.py
import logging
import threading
from typing import Dict, List, Optional, Union

import requests

from models.session import Session
from smart.errors import FHIRRequestError

logger = logging.getLogger(__name__)


def _outcome_message(resp) -> str:
    """First OperationOutcome diagnostics in an error body, if any"""
    try:
        body = resp.json()
    except ValueError:
        return ""
    if not isinstance(body, dict) or body.get("resourceType") != "OperationOutcome":
        return ""
    for issue in body.get("issue", []):
        text = issue.get("diagnostics") or (issue.get("details") or {}).get("text")
        if text:
            return text
    return ""


class FHIRClient:
    """
    Authenticated reads and searches against the session's FHIR server.
    Every call is attempted once.
    """

    def __init__(self, session: Session, http: Optional[requests.Session] = None, timeout: float = 30):
        self.session = session
        self.base_url = session.server_url.rstrip("/")
        self._http = http
        self._local = threading.local()
        self.timeout = timeout
        self.headers = {"Accept": "application/fhir+json"}
        if session.access_token:
            self.headers["Authorization"] = f"Bearer {session.access_token}"

    @property
    def http(self):
        """An injected session, else one requests.Session per thread"""
        if self._http is not None:
            return self._http
        if not hasattr(self._local, "session"):
            self._local.session = requests.Session()
        return self._local.session

    @property
    def patient_id(self) -> Optional[str]:
        return self.session.patient_id

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def _get(self, path: str) -> Dict:
        url = self._url(path)
        try:
            resp = self.http.get(url, headers=self.headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Network error fetching {url}: {e}")
            raise FHIRRequestError(f"Could not reach {self.base_url}: {e}") from e

        if resp.status_code >= 400:
            detail = _outcome_message(resp) or resp.reason or "request failed"
            logger.error(f"GET {url} → {resp.status_code} {detail}")
            raise FHIRRequestError(f"{resp.status_code} {detail}", status_code=resp.status_code)

        try:
            body = resp.json()
        except ValueError as e:
            raise FHIRRequestError(f"Invalid JSON from {url}") from e
        if not isinstance(body, dict):
            raise FHIRRequestError(f"Expected a FHIR resource from {url}, got {type(body).__name__}")
        return body

    def read(self, resource_type: str, resource_id: str) -> Dict:
        return self._get(f"{resource_type}/{resource_id}")

    def read_current_patient(self) -> Dict:
        if not self.patient_id:
            raise FHIRRequestError("Patient is not available")
        return self.read("Patient", self.patient_id)

    def request(self, query: str, page_limit: int = 1, flat: bool = False) -> Union[List[Dict], Dict]:
        """
        GET a query and follow the Bundle's next links.
        page_limit <= 0 follows every page. With flat=True the pages'
        entry resources come back as one list, otherwise the list of
        Bundles (or the single resource when it is not a Bundle).
        """
        pages = []
        url = query
        while url:
            page = self._get(url)
            pages.append(page)
            if page.get("resourceType") != "Bundle":
                break
            if 0 < page_limit <= len(pages):
                break
            url = next(
                (link.get("url") for link in page.get("link", []) if link.get("relation") == "next"),
                None,
            )

        logger.info(f"Fetched {len(pages)} page(s) for {query}")

        if not flat:
            if len(pages) == 1 and pages[0].get("resourceType") != "Bundle":
                return pages[0]
            return pages

        resources = []
        for page in pages:
            if page.get("resourceType") != "Bundle":
                resources.append(page)
                continue
            for entry in page.get("entry", []):
                if "resource" in entry:
                    resources.append(entry["resource"])
        return resources

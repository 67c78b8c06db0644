# smart/launch.py
"""
SMART App Launch (authorization code flow) for the dashboard.

begin_launch() answers the EHR's /launch call with a redirect to the
authorize endpoint; complete_launch() runs when the browser comes back
with ?code=&state= and turns the token response into a Session.
"""
import logging
import secrets
import threading
import time
from typing import Dict, List, Mapping, Optional
from urllib.parse import urlencode, urlparse

import requests
from pydantic import BaseModel

from config import DashboardConfig
from models.session import Session
from smart.errors import LaunchError, MissingLaunchContext, UntrustedIssuer

logger = logging.getLogger(__name__)

OAUTH_URIS_EXTENSION = "http://fhir-registry.smarthealthit.org/StructureDefinition/oauth-uris"


class SmartEndpoints(BaseModel):
    authorize_uri: str
    token_uri: str


class LaunchState(BaseModel):
    server_url: str
    token_uri: str
    redirect_uri: str
    session: Optional[Session] = None
    created_at: float = 0


class LaunchStore:
    """
    In-memory launch states, keyed by the OAuth state parameter.
    States live for ttl seconds, completed or not, and the store never
    holds more than max_states; the oldest state is dropped first.
    """

    def __init__(self, ttl: float = 3600, max_states: int = 1000, clock=time.monotonic):
        self.ttl = ttl
        self.max_states = max_states
        self.clock = clock
        self.states: Dict[str, LaunchState] = {}
        self._lock = threading.Lock()

    def _purge(self):
        now = self.clock()
        expired = [s for s, ls in self.states.items() if now - ls.created_at > self.ttl]
        for state in expired:
            del self.states[state]
        if expired:
            logger.info(f"Dropped {len(expired)} expired launch state(s)")

    def add(self, state: str, launch_state: LaunchState):
        with self._lock:
            self._purge()
            while self.states and len(self.states) >= self.max_states:
                # dicts keep insertion order, so the first key is the oldest
                del self.states[next(iter(self.states))]
            launch_state.created_at = self.clock()
            self.states[state] = launch_state

    def get(self, state: str) -> Optional[LaunchState]:
        with self._lock:
            self._purge()
            return self.states.get(state)

    def __len__(self) -> int:
        return len(self.states)


def issuer_allowed(iss: str, allowed_issuers: List[str]) -> bool:
    """iss must be one of the allowed servers or a path below one"""
    target = urlparse(iss)
    for allowed in allowed_issuers:
        base = urlparse(allowed)
        if (target.scheme, target.netloc.lower()) != (base.scheme, base.netloc.lower()):
            continue
        prefix = base.path.rstrip("/")
        if target.path.rstrip("/") == prefix or target.path.startswith(prefix + "/"):
            return True
    return False


def _get_json(http, url: str, timeout: float) -> Dict:
    resp = http.get(url, headers={"Accept": "application/json"}, timeout=timeout)
    resp.raise_for_status()
    return resp.json()


def _endpoints_from_metadata(metadata: Dict) -> Optional[SmartEndpoints]:
    for rest in metadata.get("rest", []):
        for ext in (rest.get("security") or {}).get("extension", []):
            if ext.get("url") != OAUTH_URIS_EXTENSION:
                continue
            uris = {e.get("url"): e.get("valueUri") for e in ext.get("extension", [])}
            if uris.get("authorize") and uris.get("token"):
                return SmartEndpoints(authorize_uri=uris["authorize"], token_uri=uris["token"])
    return None


def discover_endpoints(iss: str, http=None, timeout: float = 30) -> SmartEndpoints:
    """
    Find the server's OAuth endpoints: .well-known/smart-configuration first,
    then the oauth-uris extension of the conformance statement.
    """
    http = http or requests.Session()
    base = iss.rstrip("/")

    try:
        config = _get_json(http, f"{base}/.well-known/smart-configuration", timeout)
        if config.get("authorization_endpoint") and config.get("token_endpoint"):
            return SmartEndpoints(
                authorize_uri=config["authorization_endpoint"],
                token_uri=config["token_endpoint"],
            )
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning(f"No .well-known/smart-configuration at {base}: {e}")

    try:
        endpoints = _endpoints_from_metadata(_get_json(http, f"{base}/metadata", timeout))
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.error(f"Failed to read conformance statement from {base}: {e}")
        raise LaunchError(f"Could not discover OAuth endpoints for {base}: {e}") from e

    if endpoints is None:
        raise LaunchError(f"{base} does not advertise SMART OAuth endpoints")
    return endpoints


def begin_launch(iss: str, launch: Optional[str], config: DashboardConfig, store: LaunchStore, http=None) -> str:
    """Record a new launch state and return the authorize redirect URL"""
    if not iss:
        raise LaunchError("Missing 'iss' parameter")
    if not issuer_allowed(iss, config.smart.allowed_issuers):
        logger.warning(f"Refusing launch from untrusted issuer {iss}")
        raise UntrustedIssuer(f"Issuer {iss} is not an allowed FHIR server")

    endpoints = discover_endpoints(iss, http=http, timeout=config.request_timeout)
    state = secrets.token_urlsafe(16)
    store.add(state, LaunchState(
        server_url=iss.rstrip("/"),
        token_uri=endpoints.token_uri,
        redirect_uri=config.smart.redirect_uri,
    ))

    params = {
        "response_type": "code",
        "client_id": config.smart.client_id,
        "scope": config.smart.scope,
        "redirect_uri": config.smart.redirect_uri,
        "aud": iss,
        "state": state,
    }
    if launch:
        params["launch"] = launch
    else:
        logger.info(f"Standalone launch against {iss}")

    logger.info(f"Redirecting launch for {iss} to {endpoints.authorize_uri}")
    return f"{endpoints.authorize_uri}?{urlencode(params)}"


def complete_launch(params: Mapping[str, str], config: DashboardConfig, store: LaunchStore, http=None) -> Session:
    """
    Resume a launch from the redirect's query parameters.
    Raises MissingLaunchContext when there is no state to resume.
    """
    state = params.get("state")
    if not state:
        raise MissingLaunchContext("No 'state' parameter found in the URL")

    if params.get("error"):
        raise LaunchError(params.get("error_description") or params["error"])

    launch_state = store.get(state)
    if launch_state is None:
        raise LaunchError(f"No launch state found for '{state}'")
    if launch_state.session is not None:
        return launch_state.session

    code = params.get("code")
    if not code:
        raise LaunchError("Missing 'code' parameter in the authorization response")

    http = http or requests.Session()
    try:
        resp = http.post(
            launch_state.token_uri,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": launch_state.redirect_uri,
                "client_id": config.smart.client_id,
            },
            headers={"Accept": "application/json"},
            timeout=config.request_timeout,
        )
        resp.raise_for_status()
        token = resp.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.error(f"Token exchange with {launch_state.token_uri} failed: {e}")
        raise LaunchError(f"Token exchange failed: {e}") from e

    if not token.get("access_token"):
        raise LaunchError("Token response did not include an access token")

    session = Session(
        server_url=launch_state.server_url,
        access_token=token["access_token"],
        patient_id=token.get("patient"),
    )
    launch_state.session = session
    logger.info(f"SMART session established with {session.server_url} (patient {session.patient_id})")
    return session

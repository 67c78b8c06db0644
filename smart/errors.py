# smart/errors.py
from typing import Optional


class LaunchError(Exception):
    """SMART launch could not complete. Terminal for the page."""


class MissingLaunchContext(LaunchError):
    """The page was opened without a launch state, so there is nothing to resume"""


class FHIRRequestError(Exception):
    """A FHIR read or search failed"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UntrustedIssuer(LaunchError):
    """The launch names a FHIR server outside the configured allow-list"""

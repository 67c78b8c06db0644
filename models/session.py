# models/session.py
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Session(BaseModel):
    """Connection to one FHIR server for the lifetime of a page load"""
    model_config = ConfigDict(frozen=True)

    server_url: str
    access_token: Optional[str] = None
    patient_id: Optional[str] = None
    dev_mode: bool = False

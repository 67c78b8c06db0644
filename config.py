# config.py
import logging
import os
from typing import List, Optional

import yaml
from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "dashboard.yaml"


class LabTestConfig(BaseModel):
    """The single laboratory test charted by the dashboard"""
    system: str = "http://loinc.org"
    code: str = "2093-3"  # Cholesterol [Mass/volume] in Serum or Plasma
    label: str = "cholesterol"
    title: str = "Total Cholesterol Over Time"
    series_name: str = "Cholesterol"
    unit: str = "mg/dL"

    @field_validator("code")
    def validate_code(cls, v):
        if not v or not v.strip():
            raise ValueError("Lab test code cannot be empty")
        return v.strip()

    @property
    def coding(self) -> str:
        return f"{self.system}|{self.code}"

    @property
    def axis_title(self) -> str:
        return f"{self.series_name} ({self.unit})"


class SmartConfig(BaseModel):
    client_id: str = "labtrend-dashboard"
    scope: str = "launch launch/patient patient/*.read openid fhirUser"
    redirect_uri: str = "http://localhost:8000/"
    # servers /launch may redirect to, matched by origin and path prefix
    allowed_issuers: List[str] = [
        "https://launch.smarthealthit.org",
        "https://r3.smarthealthit.org",
    ]
    state_ttl: float = 3600
    max_states: int = 1000


class DashboardConfig(BaseModel):
    dev_server_url: str = "https://r3.smarthealthit.org"
    dev_patient_id: str = "smart-1288992"
    page_limit: int = 3
    request_timeout: float = 30
    lab: LabTestConfig = LabTestConfig()
    smart: SmartConfig = SmartConfig()

    @field_validator("dev_server_url")
    def validate_server_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid FHIR server URL: {v}")
        return v.rstrip("/")


def load_yaml(path):
    with open(path) as f:
        return yaml.safe_load(f)


def load_config(path: Optional[str] = None) -> DashboardConfig:
    """
    Build the dashboard config from the compiled-in defaults,
    overridden by a YAML file when one is present.
    """
    if path is None:
        if not os.path.exists(DEFAULT_CONFIG_PATH):
            return DashboardConfig()
        path = DEFAULT_CONFIG_PATH

    logger.info(f"Loading dashboard config from {path}")
    data = load_yaml(path) or {}
    return DashboardConfig(**data)

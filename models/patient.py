# models/patient.py
import logging
from typing import Dict, Optional

from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)

GENDERS = ("male", "female", "other", "unknown")
NO_NAME = "(no name)"
NO_ID = "(no id)"


def format_human_name(name: Optional[Dict]) -> str:
    """Given names joined by spaces, then the family name"""
    if not name:
        return NO_NAME
    given = " ".join(name.get("given") or [])
    family = name.get("family") or ""
    # STU3 servers may still send family as a list
    if isinstance(family, list):
        family = " ".join(family)
    full = f"{given} {family}".strip()
    return full or NO_NAME


def capitalize(s: Optional[str]) -> str:
    if not s:
        return ""
    return s[0].upper() + s[1:]


class PatientRecord(BaseModel):
    """Demographics shown in the patient panel"""
    id: Optional[str] = None
    name: str = NO_NAME
    gender: str = "unknown"
    birth_date: Optional[str] = None

    @field_validator("gender", mode="before")
    def validate_gender(cls, v):
        if not v:
            return "unknown"
        if v not in GENDERS:
            logger.warning(f"Unexpected patient gender {v!r}, using 'unknown'")
            return "unknown"
        return v

    @classmethod
    def from_resource(cls, resource: Dict) -> "PatientRecord":
        names = resource.get("name") or []
        return cls(
            id=resource.get("id"),
            name=format_human_name(names[0] if names else None),
            gender=resource.get("gender"),
            birth_date=resource.get("birthDate"),
        )

    @property
    def display_gender(self) -> str:
        return capitalize(self.gender)

    @property
    def display_birth_date(self) -> str:
        return self.birth_date or "unknown"

    @property
    def display_id(self) -> str:
        return self.id or NO_ID

    def display_fields(self) -> Dict[str, str]:
        return {
            "Name": self.name,
            "Gender": self.display_gender,
            "Date of Birth": self.display_birth_date,
            "Patient ID": self.display_id,
        }

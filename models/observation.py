# models/observation.py
from typing import Dict, List, Optional

from pydantic import BaseModel


def observation_date(resource: Dict) -> str:
    """
    Calendar date of an Observation.
    Prefers effectiveDateTime, falls back to issued, else empty.
    """
    if resource.get("effectiveDateTime"):
        return resource["effectiveDateTime"][:10]
    if resource.get("issued"):
        return resource["issued"][:10]
    return ""


def numeric_value(resource: Dict) -> Optional[float]:
    """valueQuantity.value, but only when the server sent a JSON number"""
    value = (resource.get("valueQuantity") or {}).get("value")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def format_number(value) -> str:
    """JSON number as a browser prints it: 4.0 is 4"""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def raw_value(resource: Dict) -> str:
    """The result as served, for the table"""
    quantity = resource.get("valueQuantity") or {}
    if quantity.get("value") is not None:
        return format_number(quantity["value"])
    if resource.get("valueString") is not None:
        return resource["valueString"]

    concept = resource.get("valueCodeableConcept")
    if concept:
        if concept.get("text"):
            return concept["text"]
        codings = concept.get("coding") or [{}]
        return codings[0].get("display") or codings[0].get("code") or ""
    return ""


def observation_unit(resource: Dict) -> str:
    quantity = resource.get("valueQuantity") or {}
    return quantity.get("unit") or quantity.get("code") or ""


class LabObservation(BaseModel):
    """One row of the lab table"""
    date: str = ""
    value: Optional[float] = None
    raw_value: str = ""
    unit: str = ""
    status: str = ""

    @classmethod
    def from_resource(cls, resource: Dict) -> "LabObservation":
        return cls(
            date=observation_date(resource),
            value=numeric_value(resource),
            raw_value=raw_value(resource),
            unit=observation_unit(resource),
            status=resource.get("status") or "",
        )

    @property
    def is_chartable(self) -> bool:
        return bool(self.date) and self.value is not None

    def cells(self) -> List[str]:
        return [self.date, self.raw_value, self.unit, self.status]


class ChartSeries(BaseModel):
    """(date, value) pairs of the observations that have both"""
    dates: List[str] = []
    values: List[float] = []

    @classmethod
    def from_observations(cls, observations: List[LabObservation]) -> "ChartSeries":
        points = [o for o in observations if o.is_chartable]
        return cls(dates=[o.date for o in points], values=[o.value for o in points])

    def __len__(self) -> int:
        return len(self.values)

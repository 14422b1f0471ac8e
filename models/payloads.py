"""Typed alert payloads, one per alert kind."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional

from .alert_kind import AlertKind


class MaintenanceTrigger(Enum):
    DATE = "date"
    KM = "km"


@dataclass
class Payload:
    """Base class. ``kind`` ties each payload type to exactly one AlertKind."""

    kind: ClassVar[AlertKind]

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {
            k: (v.value if isinstance(v, Enum) else v)
            for k, v in data.items()
            if v is not None
        }


@dataclass
class InspectionPayload(Payload):
    kind: ClassVar[AlertKind] = AlertKind.CT_EXPIRY
    days_remaining: int


@dataclass
class MaintenanceDuePayload(Payload):
    kind: ClassVar[AlertKind] = AlertKind.MAINTENANCE_DUE
    trigger: MaintenanceTrigger
    days_remaining: Optional[int] = None
    km_remaining: Optional[float] = None


@dataclass
class ConsumptionPayload(Payload):
    kind: ClassVar[AlertKind] = AlertKind.HIGH_CONSUMPTION
    consumption: float
    threshold: float
    fuel_fill_id: str


@dataclass
class NoFillPayload(Payload):
    kind: ClassVar[AlertKind] = AlertKind.NO_FILL
    days_since: int


@dataclass
class DocumentExpiryPayload(Payload):
    kind: ClassVar[AlertKind] = AlertKind.DOCUMENT_EXPIRY
    document: str
    days_remaining: int


@dataclass
class ReminderPayload(Payload):
    kind: ClassVar[AlertKind] = AlertKind.CUSTOM_REMINDER
    reminder_id: str
    days_remaining: int


@dataclass
class ReplacementPayload(Payload):
    kind: ClassVar[AlertKind] = AlertKind.REPLACEMENT_ENDING
    assignment_id: str
    driver_id: str


@dataclass
class IncidentPayload(Payload):
    kind: ClassVar[AlertKind] = AlertKind.INCIDENT
    incident_id: str


@dataclass
class MonthlyReportPayload(Payload):
    kind: ClassVar[AlertKind] = AlertKind.MONTHLY_REPORT
    period: str
    report: Dict[str, Any] = field(default_factory=dict)

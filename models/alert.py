"""Alert candidates produced by rules and alerts persisted in the ledger."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from .alert_kind import AlertKind
from .payloads import Payload


@dataclass
class AlertCandidate:
    """
    Output of a rule evaluator, before deduplication.

    ``vehicle_id`` is None for fleet-level alerts. ``driver_id`` names the
    driver to notify when the kind is driver-relevant.
    """

    vehicle_id: Optional[str]
    message: str
    payload: Payload
    driver_id: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.payload, Payload):
            raise TypeError(f"payload must be a Payload, got {type(self.payload).__name__}")

    @property
    def kind(self) -> AlertKind:
        return self.payload.kind

    @property
    def dedup_key(self):
        return (self.vehicle_id, self.kind)


@dataclass
class Alert:
    """A row of the alerts ledger."""

    id: str
    vehicle_id: Optional[str]
    kind: AlertKind
    message: str
    payload: Dict[str, Any] = field(default_factory=dict)
    triggered_at: Optional[datetime] = None
    acknowledged: bool = False
    driver_id: Optional[str] = None

    @property
    def is_fleet_level(self) -> bool:
        return self.vehicle_id is None

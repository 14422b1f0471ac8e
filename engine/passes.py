"""Evaluation passes and the trigger entry point."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, List, Optional

from jsonschema import ValidationError, validate

from models import (
    CONSUMPTION_L100,
    INSPECTION_DAYS,
    MAINTENANCE_DAYS,
    MAINTENANCE_KM,
    NO_FILL_DAYS,
    AlertCandidate,
    FuelFill,
    GlobalSettings,
    Vehicle,
    load_assignment,
    load_fuel_fill,
    load_incident,
    load_reminder,
    load_vehicle,
    resolve,
)
from store import RecordStore, eq, lt, not_null

from . import rules
from .errors import TriggerError
from .ledger import AlertLedger
from .notify import Notifier
from .reports import MonthlyReportAggregator
from .settings import load_global_settings

logger = logging.getLogger("fleetwatch.engine.passes")

TRIGGER_SCHEMA = {
    "type": "object",
    "required": ["type"],
    "properties": {
        "type": {"enum": ["daily", "high_consumption", "monthly_report"]},
        "fuel_fill_id": {"type": ["string", "integer"]},
    },
    "if": {"properties": {"type": {"const": "high_consumption"}}},
    "then": {"required": ["fuel_fill_id"]},
}


@dataclass
class PassResult:
    """Outcome of one pass: candidates seen, alerts raised, duplicates suppressed."""

    kind: str
    candidates: int = 0
    raised: List[str] = field(default_factory=list)
    suppressed: int = 0

    @property
    def raised_count(self) -> int:
        return len(self.raised)


class AlertEngine:
    """
    Runs rule evaluators against the store and records their alerts.

    A pass is sequential: vehicle by vehicle, rule by rule. It is not
    transactional; if it fails halfway, alerts raised so far stay and the
    next run completes the rest.

    Calendar decisions (which month to report, which day is "tomorrow")
    are taken in ``tz``, the timezone the passes are scheduled in.
    """

    def __init__(self, store: RecordStore, notifier: Optional[Notifier] = None, tz: Optional[tzinfo] = None):
        self.store = store
        self.tz = tz or timezone.utc
        self.ledger = AlertLedger(store)
        self.notifier = notifier
        self.reports = MonthlyReportAggregator(store)

    def local_now(self, now: Optional[datetime] = None) -> datetime:
        """``now`` (default: the current time) expressed in the engine timezone."""
        return (now or datetime.now(self.tz)).astimezone(self.tz)

    def _raise(self, candidate: Optional[AlertCandidate], result: PassResult, now: datetime) -> None:
        if candidate is None:
            return
        result.candidates += 1
        alert = self.ledger.raise_alert(candidate, now)
        if alert is None:
            result.suppressed += 1
            return
        result.raised.append(alert.kind.value)
        if self.notifier is not None:
            self.notifier.dispatch(alert)

    def _last_fill(self, vehicle_id: str) -> Optional[FuelFill]:
        row = self.store.first("fuel_fills", [eq("vehicle_id", vehicle_id)], order="filled_at", desc=True)
        return load_fuel_fill(row) if row else None

    def _plate(self, vehicle_id: str, plates: Dict[str, str]) -> str:
        if vehicle_id not in plates:
            row = self.store.get("vehicles", vehicle_id)
            plates[vehicle_id] = (row or {}).get("plate") or "unknown"
        return plates[vehicle_id]

    def evaluate_vehicle(
        self,
        vehicle: Vehicle,
        settings: Optional[GlobalSettings],
        now: datetime,
        result: PassResult,
    ) -> None:
        """Run every per-vehicle daily rule."""
        self._raise(
            rules.check_inspection(vehicle, resolve(vehicle, INSPECTION_DAYS, settings), now),
            result,
            now,
        )
        self._raise(
            rules.check_maintenance_date(vehicle, resolve(vehicle, MAINTENANCE_DAYS, settings), now),
            result,
            now,
        )
        last_fill = self._last_fill(vehicle.id)
        self._raise(
            rules.check_maintenance_km(vehicle, last_fill, resolve(vehicle, MAINTENANCE_KM, settings)),
            result,
            now,
        )
        self._raise(
            rules.check_no_fill(vehicle, last_fill, resolve(vehicle, NO_FILL_DAYS, settings), now),
            result,
            now,
        )
        for candidate in rules.check_documents(vehicle, now):
            self._raise(candidate, result, now)

        replacements = self.store.select(
            "driver_assignments",
            [eq("vehicle_id", vehicle.id), eq("type", "replacement"), not_null("end_date")],
        )
        for row in replacements:
            self._raise(rules.check_replacement(load_assignment(row), vehicle.plate, now), result, now)

    def run_daily(self, now: Optional[datetime] = None) -> PassResult:
        """Full sweep: every vehicle, then open reminders, then unacknowledged incidents."""
        now = self.local_now(now)
        result = PassResult("daily")
        settings = load_global_settings(self.store)
        if settings is None:
            logger.warning("No global alert settings, using fallback thresholds")

        plates: Dict[str, str] = {}
        for row in self.store.select("vehicles", order="plate"):
            vehicle = load_vehicle(row)
            plates[vehicle.id] = vehicle.plate
            self.evaluate_vehicle(vehicle, settings, now, result)

        for row in self.store.select("custom_reminders", [eq("done", False)]):
            reminder = load_reminder(row)
            self._raise(
                rules.check_reminder(reminder, self._plate(reminder.vehicle_id, plates), now),
                result,
                now,
            )

        for row in self.store.select("incidents", [eq("acknowledged", False)]):
            incident = load_incident(row)
            self._raise(
                rules.check_incident(incident, self._plate(incident.vehicle_id, plates)),
                result,
                now,
            )

        logger.info(
            "Daily pass: %d vehicle(s), %d raised, %d suppressed",
            len(plates),
            result.raised_count,
            result.suppressed,
        )
        return result

    def check_high_consumption(self, fuel_fill_id: Any, now: Optional[datetime] = None) -> PassResult:
        """Consumption check for one newly inserted fill."""
        now = self.local_now(now)
        result = PassResult("high_consumption")

        row = self.store.get("fuel_fills", fuel_fill_id)
        if row is None:
            logger.warning("Fuel fill %s not found", fuel_fill_id)
            return result
        fill = load_fuel_fill(row)

        previous_row = self.store.first(
            "fuel_fills",
            [eq("vehicle_id", fill.vehicle_id), lt("filled_at", row["filled_at"])],
            order="filled_at",
            desc=True,
        )
        previous = load_fuel_fill(previous_row) if previous_row else None

        vehicle_row = self.store.get("vehicles", fill.vehicle_id)
        if vehicle_row is None:
            logger.warning("Vehicle %s for fill %s not found", fill.vehicle_id, fill.id)
            return result
        vehicle = load_vehicle(vehicle_row)
        threshold = resolve(vehicle, CONSUMPTION_L100, load_global_settings(self.store))

        self._raise(rules.check_consumption(vehicle, fill, previous, threshold), result, now)
        return result

    def generate_monthly_report(self, now: Optional[datetime] = None) -> PassResult:
        now = self.local_now(now)
        result = PassResult("monthly_report")
        _, candidate = self.reports.generate(now)
        self._raise(candidate, result, now)
        return result

    def handle(self, body: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Dispatch a trigger request.

        ``{"type": "daily"}``, ``{"type": "high_consumption", "fuel_fill_id": ...}``
        or ``{"type": "monthly_report"}``. Raises TriggerError for anything else.
        """
        try:
            validate(instance=body, schema=TRIGGER_SCHEMA)
        except ValidationError as e:
            raise TriggerError(f"Invalid trigger: {e.message}") from e

        kind = body["type"]
        if kind == "daily":
            result = self.run_daily(now)
            message = "Daily alerts checked"
        elif kind == "high_consumption":
            result = self.check_high_consumption(body["fuel_fill_id"], now)
            message = "Consumption check done"
        else:
            result = self.generate_monthly_report(now)
            message = "Monthly report generated"
        return {"success": True, "message": message, "raised": result.raised_count}

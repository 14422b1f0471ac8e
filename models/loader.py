"""Conversion between store rows (JSON dicts) and model objects."""

from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, Union

from dateutil.parser import isoparse

from .alert import Alert, AlertCandidate
from .alert_kind import AlertKind
from .assignment import DriverAssignment
from .fuel_fill import FuelFill
from .incident import Incident
from .monthly_report import CategoryTotal, FuelTotal, MonthlyReport
from .reminder import CustomReminder
from .thresholds import THRESHOLD_KEYS, GlobalSettings
from .vehicle import Vehicle


def parse_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse 'YYYY-MM-DD' (or a full timestamp) into a date."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return isoparse(value).date()


def parse_datetime(value: Union[str, date, None]) -> Optional[datetime]:
    """Parse an ISO timestamp into an aware datetime (naive values are UTC)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        parsed = isoparse(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_datetime(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def _number(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def load_vehicle(row: Dict[str, Any]) -> Vehicle:
    documents = {}
    for name, info in (row.get("documents") or {}).items():
        expiry = info.get("expiry") if isinstance(info, dict) else None
        documents[name] = parse_date(expiry)
    return Vehicle(
        row["id"],
        row.get("plate") or "?",
        row.get("driver_id"),
        parse_date(row.get("next_inspection_date")),
        parse_date(row.get("next_maintenance_date")),
        _number(row.get("next_maintenance_km")),
        {key: row.get(key) for key in THRESHOLD_KEYS},
        documents,
    )


def load_global_settings_row(row: Optional[Dict[str, Any]]) -> Optional[GlobalSettings]:
    if row is None:
        return None
    return GlobalSettings({key: row.get(key) for key in THRESHOLD_KEYS}, row.get("id"))


def load_fuel_fill(row: Dict[str, Any]) -> FuelFill:
    return FuelFill(
        row["id"],
        row["vehicle_id"],
        parse_datetime(row["filled_at"]),
        _number(row.get("liters")),
        _number(row.get("km_at_fill")),
        _number(row.get("price_ht")),
        _number(row.get("price_ttc")),
        row.get("driver_id"),
    )


def load_incident(row: Dict[str, Any]) -> Incident:
    return Incident(
        row["id"],
        row["vehicle_id"],
        row.get("type") or "other",
        row.get("description"),
        _number(row.get("amount")),
        bool(row.get("paid")),
        parse_date(row.get("incident_date")),
        bool(row.get("acknowledged")),
        row.get("driver_id"),
    )


def load_reminder(row: Dict[str, Any]) -> CustomReminder:
    return CustomReminder(
        row["id"],
        row["vehicle_id"],
        row.get("label") or "",
        parse_date(row["reminder_date"]),
        row.get("alert_days_before"),
        bool(row.get("done")),
    )


def load_assignment(row: Dict[str, Any]) -> DriverAssignment:
    return DriverAssignment(
        row["id"],
        row["vehicle_id"],
        row["driver_id"],
        row.get("type") or "titular",
        parse_date(row.get("start_date")),
        parse_date(row.get("end_date")),
    )


def load_alert(row: Dict[str, Any]) -> Alert:
    return Alert(
        row["id"],
        row.get("vehicle_id"),
        AlertKind(row["type"]),
        row.get("message") or "",
        row.get("payload") or {},
        parse_datetime(row.get("triggered_at")),
        bool(row.get("acknowledged")),
        row.get("driver_id"),
    )


def alert_to_row(candidate: AlertCandidate, triggered_at: datetime) -> Dict[str, Any]:
    """Build the insert row for a new, unacknowledged alert."""
    return {
        "vehicle_id": candidate.vehicle_id,
        "type": candidate.kind.value,
        "message": candidate.message,
        "payload": candidate.payload.to_dict(),
        "triggered_at": format_datetime(triggered_at),
        "acknowledged": False,
    }


def load_monthly_report(row: Dict[str, Any]) -> MonthlyReport:
    data = row.get("data") or {}
    fuel = data.get("fuel") or {}
    cleaning = data.get("cleaning") or {}
    maintenance = data.get("maintenance") or {}
    incidents = data.get("incidents") or {}
    return MonthlyReport(
        row["period"],
        data.get("vehicles_count", 0),
        FuelTotal(
            fuel.get("total_ht", 0.0),
            fuel.get("total_ttc", 0.0),
            fuel.get("total_liters", 0.0),
            fuel.get("fills_count", 0),
        ),
        CategoryTotal(cleaning.get("total_ttc", 0.0), cleaning.get("count", 0)),
        CategoryTotal(maintenance.get("total", 0.0), maintenance.get("count", 0)),
        CategoryTotal(incidents.get("total_amount", 0.0), incidents.get("count", 0)),
        row.get("id"),
    )

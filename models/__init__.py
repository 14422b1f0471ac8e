"""
Fleet alerting models.

This package provides the data model the alert engine works on:
- AlertKind: which rule produced an alert
- Vehicle, FuelFill, Incident, CustomReminder, DriverAssignment: fleet state
- GlobalSettings / resolve: thresholds with per-vehicle overrides
- AlertCandidate, Alert and typed payloads: rule output and ledger rows
- MonthlyReport: per-period cost rollup
"""

from .alert_kind import AlertKind, DRIVER_RELEVANT_KINDS
from .vehicle import Vehicle
from .fuel_fill import FuelFill
from .incident import Incident
from .reminder import CustomReminder
from .assignment import DriverAssignment, REPLACEMENT, TITULAR
from .thresholds import (
    CONSUMPTION_L100,
    FALLBACK_THRESHOLDS,
    INSPECTION_DAYS,
    MAINTENANCE_DAYS,
    MAINTENANCE_KM,
    NO_FILL_DAYS,
    THRESHOLD_KEYS,
    GlobalSettings,
    resolve,
)
from .payloads import (
    ConsumptionPayload,
    DocumentExpiryPayload,
    IncidentPayload,
    InspectionPayload,
    MaintenanceDuePayload,
    MaintenanceTrigger,
    MonthlyReportPayload,
    NoFillPayload,
    Payload,
    ReminderPayload,
    ReplacementPayload,
)
from .alert import Alert, AlertCandidate
from .monthly_report import CategoryTotal, FuelTotal, MonthlyReport
from .calculations import consumption_l100, days_since, days_until, previous_month_window
from .loader import (
    alert_to_row,
    load_alert,
    load_assignment,
    load_fuel_fill,
    load_global_settings_row,
    load_incident,
    load_monthly_report,
    load_reminder,
    load_vehicle,
    parse_date,
    parse_datetime,
)

__all__ = [
    "AlertKind",
    "DRIVER_RELEVANT_KINDS",
    "Vehicle",
    "FuelFill",
    "Incident",
    "CustomReminder",
    "DriverAssignment",
    "REPLACEMENT",
    "TITULAR",
    "CONSUMPTION_L100",
    "FALLBACK_THRESHOLDS",
    "INSPECTION_DAYS",
    "MAINTENANCE_DAYS",
    "MAINTENANCE_KM",
    "NO_FILL_DAYS",
    "THRESHOLD_KEYS",
    "GlobalSettings",
    "resolve",
    "ConsumptionPayload",
    "DocumentExpiryPayload",
    "IncidentPayload",
    "InspectionPayload",
    "MaintenanceDuePayload",
    "MaintenanceTrigger",
    "MonthlyReportPayload",
    "NoFillPayload",
    "Payload",
    "ReminderPayload",
    "ReplacementPayload",
    "Alert",
    "AlertCandidate",
    "CategoryTotal",
    "FuelTotal",
    "MonthlyReport",
    "consumption_l100",
    "days_since",
    "days_until",
    "previous_month_window",
    "alert_to_row",
    "load_alert",
    "load_assignment",
    "load_fuel_fill",
    "load_global_settings_row",
    "load_incident",
    "load_monthly_report",
    "load_reminder",
    "load_vehicle",
    "parse_date",
    "parse_datetime",
]

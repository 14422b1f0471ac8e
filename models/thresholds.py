"""Alert thresholds: global defaults and per-vehicle overrides."""

from typing import TYPE_CHECKING, Dict, Optional

if TYPE_CHECKING:
    from .vehicle import Vehicle

INSPECTION_DAYS = "alert_inspection_days_before"
MAINTENANCE_DAYS = "alert_maintenance_days_before"
MAINTENANCE_KM = "alert_maintenance_km_before"
CONSUMPTION_L100 = "fuel_alert_threshold_l100"
NO_FILL_DAYS = "no_fill_alert_days"

THRESHOLD_KEYS = (
    INSPECTION_DAYS,
    MAINTENANCE_DAYS,
    MAINTENANCE_KM,
    CONSUMPTION_L100,
    NO_FILL_DAYS,
)

# Used when the global settings row is missing
FALLBACK_THRESHOLDS: Dict[str, float] = {
    INSPECTION_DAYS: 30,
    MAINTENANCE_DAYS: 14,
    MAINTENANCE_KM: 500,
    CONSUMPTION_L100: 12.0,
    NO_FILL_DAYS: 7,
}

DOCUMENT_EXPIRY_DAYS = 30
REMINDER_DAYS = 14


class GlobalSettings:
    """Fleet-wide default thresholds (singleton ``alert_settings`` row)."""

    def __init__(self, values: Optional[Dict[str, float]] = None, id: Optional[str] = None):
        self.id = id
        self.values = dict(FALLBACK_THRESHOLDS)
        for key, value in (values or {}).items():
            if key in FALLBACK_THRESHOLDS and value is not None:
                self.values[key] = value

    def get(self, key: str) -> float:
        return self.values[key]

    def as_dict(self) -> Dict[str, float]:
        return dict(self.values)


def resolve(vehicle: "Vehicle", key: str, global_settings: Optional[GlobalSettings]) -> float:
    """
    Effective threshold for a vehicle.

    The vehicle's own value wins when set; otherwise the global default,
    otherwise the hard-coded fallback.
    """
    if key not in FALLBACK_THRESHOLDS:
        raise KeyError(f"Unknown threshold key: {key}")
    value = vehicle.overrides.get(key)
    if value is not None:
        return value
    if global_settings is not None:
        return global_settings.get(key)
    return FALLBACK_THRESHOLDS[key]

"""AlertKind enum identifying which rule produced an alert."""

from enum import Enum


class AlertKind(Enum):
    """Alert kinds. The value is the ``type`` column stored on alert rows."""

    CT_EXPIRY = "ct_expiry"
    MAINTENANCE_DUE = "maintenance_due"
    HIGH_CONSUMPTION = "high_consumption"
    NO_FILL = "no_fill"
    DOCUMENT_EXPIRY = "document_expiry"
    CUSTOM_REMINDER = "custom_reminder"
    REPLACEMENT_ENDING = "replacement_ending"
    INCIDENT = "incident"
    MONTHLY_REPORT = "monthly_report"

    @property
    def title(self) -> str:
        """Push notification title."""
        return _TITLES[self]

    @property
    def notifies_driver(self) -> bool:
        """Whether the concerned driver is notified in addition to admins."""
        return self in DRIVER_RELEVANT_KINDS


_TITLES = {
    AlertKind.CT_EXPIRY: "⚠️ Inspection due",
    AlertKind.MAINTENANCE_DUE: "🔧 Maintenance due",
    AlertKind.HIGH_CONSUMPTION: "⛽ High fuel consumption",
    AlertKind.NO_FILL: "⛽ No recent fill",
    AlertKind.DOCUMENT_EXPIRY: "📄 Document expiring",
    AlertKind.CUSTOM_REMINDER: "📌 Reminder",
    AlertKind.REPLACEMENT_ENDING: "🔄 Replacement ending",
    AlertKind.INCIDENT: "🚨 Incident reported",
    AlertKind.MONTHLY_REPORT: "📊 Monthly report",
}

# Incident and consumption alerts stay admin-only
DRIVER_RELEVANT_KINDS = frozenset(
    {AlertKind.CT_EXPIRY, AlertKind.MAINTENANCE_DUE, AlertKind.REPLACEMENT_ENDING}
)

"""CustomReminder class for user-defined vehicle reminders."""

from datetime import date
from typing import Optional


class CustomReminder:
    """A dated reminder with its own lead time."""

    def __init__(
        self,
        id: str,
        vehicle_id: str,
        label: str,
        reminder_date: date,
        alert_days_before: Optional[int] = None,
        done: bool = False,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.label = label
        self.reminder_date = reminder_date
        self.alert_days_before = alert_days_before
        self.done = done

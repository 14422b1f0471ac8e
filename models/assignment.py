"""DriverAssignment class linking drivers to vehicles."""

from datetime import date
from typing import Optional

TITULAR = "titular"
REPLACEMENT = "replacement"


class DriverAssignment:
    """A titular or replacement driver on a vehicle over a date range."""

    def __init__(
        self,
        id: str,
        vehicle_id: str,
        driver_id: str,
        type: str = TITULAR,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.driver_id = driver_id
        self.type = type
        self.start_date = start_date
        self.end_date = end_date

    @property
    def is_replacement(self) -> bool:
        return self.type == REPLACEMENT

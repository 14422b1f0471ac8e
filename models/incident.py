"""Incident class for driver-reported incidents."""

from datetime import date
from typing import Optional


class Incident:
    """A breakdown, accident, fine or similar event on a vehicle."""

    def __init__(
        self,
        id: str,
        vehicle_id: str,
        type: str,
        description: Optional[str] = None,
        amount: Optional[float] = None,
        paid: bool = False,
        incident_date: Optional[date] = None,
        acknowledged: bool = False,
        driver_id: Optional[str] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.type = type
        self.description = description
        self.amount = amount
        self.paid = paid
        self.incident_date = incident_date
        self.acknowledged = acknowledged
        self.driver_id = driver_id

    @property
    def summary(self) -> str:
        if self.description:
            return f"{self.type}: {self.description}"
        return self.type

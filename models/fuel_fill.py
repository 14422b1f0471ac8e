"""FuelFill class for fuel purchase records."""

from datetime import datetime
from typing import Optional


class FuelFill:
    """A fuel fill reported by a driver, with the odometer at the pump."""

    def __init__(
        self,
        id: str,
        vehicle_id: str,
        filled_at: datetime,
        liters: Optional[float] = None,
        km_at_fill: Optional[float] = None,
        price_ht: Optional[float] = None,
        price_ttc: Optional[float] = None,
        driver_id: Optional[str] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.filled_at = filled_at
        self.liters = liters
        self.km_at_fill = km_at_fill
        self.price_ht = price_ht
        self.price_ttc = price_ttc
        self.driver_id = driver_id

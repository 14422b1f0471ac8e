"""Vehicle class - the aggregate the daily rules are evaluated against."""

from datetime import date
from typing import Dict, List, Optional, Tuple

from .thresholds import THRESHOLD_KEYS


class Vehicle:
    """A fleet vehicle with its due dates, overrides and documents."""

    def __init__(
        self,
        id: str,
        plate: str,
        driver_id: Optional[str] = None,
        next_inspection_date: Optional[date] = None,
        next_maintenance_date: Optional[date] = None,
        next_maintenance_km: Optional[float] = None,
        overrides: Optional[Dict[str, float]] = None,
        documents: Optional[Dict[str, Optional[date]]] = None,
    ):
        self.id = id
        self.plate = plate
        self.driver_id = driver_id
        self.next_inspection_date = next_inspection_date
        self.next_maintenance_date = next_maintenance_date
        self.next_maintenance_km = next_maintenance_km
        self.overrides = {
            k: v for k, v in (overrides or {}).items() if k in THRESHOLD_KEYS and v is not None
        }
        self.documents = documents or {}

    def expiring_documents(self) -> List[Tuple[str, date]]:
        """Documents that carry an expiry date, in name order."""
        return sorted(
            (name, expiry) for name, expiry in self.documents.items() if expiry is not None
        )

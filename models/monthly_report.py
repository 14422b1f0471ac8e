"""MonthlyReport dataclass for per-period cost rollups."""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class CategoryTotal:
    total: float = 0.0
    count: int = 0


@dataclass
class FuelTotal:
    total_ht: float = 0.0
    total_ttc: float = 0.0
    total_liters: float = 0.0
    fills_count: int = 0


@dataclass
class MonthlyReport:
    """Cost snapshot for one calendar month (period ``YYYY-MM``)."""

    period: str
    vehicles_count: int = 0
    fuel: FuelTotal = field(default_factory=FuelTotal)
    cleaning: CategoryTotal = field(default_factory=CategoryTotal)
    maintenance: CategoryTotal = field(default_factory=CategoryTotal)
    incidents: CategoryTotal = field(default_factory=CategoryTotal)
    id: Optional[str] = None

    @property
    def grand_total(self) -> float:
        return (
            self.fuel.total_ttc
            + self.cleaning.total
            + self.maintenance.total
            + self.incidents.total
        )

    def to_data(self) -> Dict[str, Any]:
        """Nested dict stored in the ``data`` column of ``monthly_reports``."""
        return {
            "period": self.period,
            "vehicles_count": self.vehicles_count,
            "fuel": {
                "total_ht": self.fuel.total_ht,
                "total_ttc": self.fuel.total_ttc,
                "total_liters": self.fuel.total_liters,
                "fills_count": self.fuel.fills_count,
            },
            "cleaning": {"total_ttc": self.cleaning.total, "count": self.cleaning.count},
            "maintenance": {"total": self.maintenance.total, "count": self.maintenance.count},
            "incidents": {"total_amount": self.incidents.total, "count": self.incidents.count},
            "grand_total": self.grand_total,
        }

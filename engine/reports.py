"""Monthly cost report aggregation."""

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from models import (
    AlertCandidate,
    CategoryTotal,
    FuelTotal,
    MonthlyReport,
    MonthlyReportPayload,
    load_monthly_report,
    previous_month_window,
)
from store import DuplicateRecord, RecordStore, eq, gte, lt

logger = logging.getLogger("fleetwatch.engine.reports")

REPORTS = "monthly_reports"


def _sum(rows: List[Dict[str, Any]], column: str) -> float:
    return sum(float(r.get(column) or 0) for r in rows)


class MonthlyReportAggregator:
    """
    Rolls the previous calendar month into a ``monthly_reports`` row.

    Meant to run on the first day of each month. A period is generated
    once: re-running returns the stored report and raises no new alert.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def _in_window(self, table: str, column: str, start: date, end: date) -> List[Dict[str, Any]]:
        return self.store.select(table, [gte(column, start.isoformat()), lt(column, end.isoformat())])

    def existing(self, period: str) -> Optional[MonthlyReport]:
        row = self.store.first(REPORTS, [eq("period", period)])
        return load_monthly_report(row) if row else None

    def aggregate(self, period: str, start: date, end: date) -> MonthlyReport:
        """Compute totals over ``[start, end)`` without persisting anything."""
        fills = self._in_window("fuel_fills", "filled_at", start, end)
        cleanings = self._in_window("cleanings", "cleaned_at", start, end)
        maintenances = self._in_window("maintenances", "service_date", start, end)
        incidents = self._in_window("incidents", "incident_date", start, end)

        return MonthlyReport(
            period,
            vehicles_count=self.store.count("vehicles"),
            fuel=FuelTotal(
                _sum(fills, "price_ht"),
                _sum(fills, "price_ttc"),
                _sum(fills, "liters"),
                len(fills),
            ),
            cleaning=CategoryTotal(_sum(cleanings, "price_ttc"), len(cleanings)),
            maintenance=CategoryTotal(_sum(maintenances, "cost"), len(maintenances)),
            incidents=CategoryTotal(_sum(incidents, "amount"), len(incidents)),
        )

    def generate(
        self, now: Optional[datetime] = None
    ) -> Tuple[MonthlyReport, Optional[AlertCandidate]]:
        """
        Build and persist the previous month's report.

        Returns the report and the alert candidate to raise, which is None
        when the period had already been generated.
        """
        now = now or datetime.now(timezone.utc)
        period, start, end = previous_month_window(now)

        stored = self.existing(period)
        if stored is not None:
            logger.info("Report for %s already exists, skipping", period)
            return stored, None

        report = self.aggregate(period, start, end)
        try:
            row = self.store.insert(REPORTS, {"period": period, "data": report.to_data()})
        except DuplicateRecord:
            logger.info("Report for %s was generated concurrently", period)
            return self.existing(period), None
        report.id = row.get("id")
        logger.info("Generated report %s: total %.2f", period, report.grand_total)

        candidate = AlertCandidate(
            None,
            f"Monthly report {period} available. Fleet total: {report.grand_total:.2f} €",
            MonthlyReportPayload(period, report.to_data()),
        )
        return report, candidate

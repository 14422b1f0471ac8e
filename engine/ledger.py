"""Alert deduplication and persistence."""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from models import Alert, AlertCandidate, AlertKind, alert_to_row, load_alert
from store import DuplicateRecord, RecordStore, eq, is_null

logger = logging.getLogger("fleetwatch.engine.ledger")

ALERTS = "alerts"


class AlertLedger:
    """
    The ``alerts`` table: at most one unacknowledged alert per (vehicle, kind).

    ``raise_alert`` looks for an open duplicate, then inserts. Stores that
    carry the partial unique index (vehicle_id, type) WHERE NOT acknowledged
    turn a concurrent double insert into DuplicateRecord, which is treated
    as "already open". Without that index two overlapping passes can still
    both insert.
    """

    def __init__(self, store: RecordStore):
        self.store = store

    def _open_filters(self, vehicle_id: Optional[str], kind: AlertKind):
        vehicle_filter = is_null("vehicle_id") if vehicle_id is None else eq("vehicle_id", vehicle_id)
        return [vehicle_filter, eq("type", kind.value), eq("acknowledged", False)]

    def has_open(self, vehicle_id: Optional[str], kind: AlertKind) -> bool:
        return self.store.count(ALERTS, self._open_filters(vehicle_id, kind)) > 0

    def raise_alert(
        self, candidate: AlertCandidate, now: Optional[datetime] = None
    ) -> Optional[Alert]:
        """Persist the candidate unless an open duplicate exists. Returns the new alert or None."""
        now = now or datetime.now(timezone.utc)
        if self.has_open(candidate.vehicle_id, candidate.kind):
            logger.debug("Suppressed %s for vehicle %s", candidate.kind.value, candidate.vehicle_id)
            return None
        try:
            row = self.store.insert(ALERTS, alert_to_row(candidate, now))
        except DuplicateRecord:
            logger.debug("Lost insert race for %s / %s", candidate.vehicle_id, candidate.kind.value)
            return None
        alert = load_alert(row)
        alert.driver_id = candidate.driver_id
        logger.info("Raised %s for vehicle %s", alert.kind.value, alert.vehicle_id or "(fleet)")
        return alert

    def acknowledge(self, alert_id: str) -> Alert:
        return load_alert(self.store.update(ALERTS, alert_id, {"acknowledged": True}))

    def open_alerts(self, vehicle_id: Optional[str] = None) -> List[Alert]:
        filters = [eq("acknowledged", False)]
        if vehicle_id is not None:
            filters.append(eq("vehicle_id", vehicle_id))
        rows = self.store.select(ALERTS, filters, order="triggered_at", desc=True)
        return [load_alert(row) for row in rows]

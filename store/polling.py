"""Change detection by periodic snapshot diffing."""

import logging
from typing import Any, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from .gateway import ChangeCallback, ChangeEvent, RecordStore

logger = logging.getLogger("fleetwatch.store.polling")


class ChangePoller:
    """
    Polls a table and reports INSERT/UPDATE events to a callback.

    The first poll only records a baseline. Deletes are not reported; the
    tables watched here are append/update only.
    """

    def __init__(
        self,
        store: RecordStore,
        table: str,
        callback: ChangeCallback,
        interval_seconds: float = 15,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self.store = store
        self.table = table
        self.callback = callback
        self.interval_seconds = interval_seconds
        self._scheduler = scheduler
        self._owns_scheduler = scheduler is None
        self._snapshot: Optional[Dict[Any, Dict[str, Any]]] = None
        self._job = None

    def poll(self) -> int:
        """Run one diff cycle. Returns the number of events emitted."""
        rows = {row["id"]: row for row in self.store.select(self.table)}
        if self._snapshot is None:
            self._snapshot = rows
            return 0
        emitted = 0
        for row_id, row in rows.items():
            previous = self._snapshot.get(row_id)
            if previous is None:
                self.callback(ChangeEvent("INSERT", self.table, row))
                emitted += 1
            elif previous != row:
                self.callback(ChangeEvent("UPDATE", self.table, row, previous))
                emitted += 1
        self._snapshot = rows
        return emitted

    def _safe_poll(self) -> None:
        try:
            self.poll()
        except Exception:
            logger.exception("Polling %s failed", self.table)

    def start(self) -> None:
        if self._scheduler is None:
            self._scheduler = BackgroundScheduler()
        self._job = self._scheduler.add_job(
            self._safe_poll, "interval", seconds=self.interval_seconds
        )
        if self._owns_scheduler:
            self._scheduler.start()
        logger.info("Polling %s every %ss", self.table, self.interval_seconds)

    def stop(self) -> None:
        if self._job is not None:
            self._job.remove()
            self._job = None
        if self._owns_scheduler and self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

"""Live alert surface: unread badge plus toasts/banners on new alerts."""

import logging
from collections import deque
from typing import Callable, Deque, List, Optional, Tuple

from engine.notify import LocalNotifier
from models import AlertKind
from store import ChangeEvent, RecordStore, eq

logger = logging.getLogger("fleetwatch.clients.realtime")

ADMIN = "admin"
DRIVER = "driver"


def badge_text(count: int) -> str:
    """Badge label; empty when there is nothing unread."""
    if count <= 0:
        return ""
    return "99+" if count > 99 else str(count)


class ToastTray(LocalNotifier):
    """Keeps the most recent toasts for the admin web surface."""

    def __init__(self, limit: int = 5):
        self.toasts: Deque[Tuple[str, str]] = deque(maxlen=limit)

    def show(self, title: str, body: str) -> None:
        self.toasts.appendleft((title, body))

    def clear(self) -> None:
        self.toasts.clear()


class AlertFeed:
    """
    Mirrors the alerts table for one viewer.

    Admins see every unacknowledged alert; a driver sees only alerts for
    their vehicle. Each change event triggers a recount; inserts that the
    viewer can see are also shown through the local notifier. This runs
    independently of the server-side evaluator.
    """

    def __init__(
        self,
        store: RecordStore,
        role: str = ADMIN,
        vehicle_id: Optional[str] = None,
        notifier: Optional[LocalNotifier] = None,
        on_count: Optional[Callable[[int], None]] = None,
    ):
        if role == DRIVER and vehicle_id is None:
            raise ValueError("A driver feed needs a vehicle_id")
        self.store = store
        self.role = role
        self.vehicle_id = vehicle_id
        self.notifier = notifier
        self.on_count = on_count
        self.unread = 0
        self._unsubscribe: Optional[Callable[[], None]] = None

    def _filters(self) -> List:
        filters = [eq("acknowledged", False)]
        if self.role == DRIVER:
            filters.append(eq("vehicle_id", self.vehicle_id))
        return filters

    def refresh(self) -> int:
        self.unread = self.store.count("alerts", self._filters())
        if self.on_count is not None:
            self.on_count(self.unread)
        return self.unread

    def is_visible(self, row: dict) -> bool:
        if self.role == ADMIN:
            return True
        return row.get("vehicle_id") == self.vehicle_id

    def handle_change(self, event: ChangeEvent) -> None:
        if event.event == "INSERT" and self.notifier is not None and self.is_visible(event.new):
            try:
                title = AlertKind(event.new.get("type")).title
            except ValueError:
                title = "New alert"
            self.notifier.show(title, event.new.get("message") or "")
        self.refresh()

    def attach(self) -> int:
        """Load the initial count and start listening. Returns the count."""
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe("alerts", self.handle_change)
        return self.refresh()

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def badge(self) -> str:
        return badge_text(self.unread)

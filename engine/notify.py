"""Push channels and notification fan-out."""

import logging
from typing import List, Optional

import requests

from models import Alert
from store import RecordStore, eq, not_null

logger = logging.getLogger("fleetwatch.engine.notify")

EXPO_PUSH_URL = "https://exp.host/--/api/v2/push/send"


class PushChannel:
    """Token-addressed push delivery."""

    def send(self, token: str, title: str, body: str) -> None:
        raise NotImplementedError


class ExpoPushChannel(PushChannel):
    """Sends through the Expo push HTTP API."""

    def __init__(self, url: str = EXPO_PUSH_URL, timeout: float = 10, session=None):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, token: str, title: str, body: str) -> None:
        if not token:
            return
        resp = self.session.post(
            self.url,
            json={"to": token, "title": title, "body": body, "sound": "default"},
            timeout=self.timeout,
        )
        resp.raise_for_status()


class LogPushChannel(PushChannel):
    """Logs pushes instead of sending them; used for fixture runs and --no-push."""

    def __init__(self):
        self.sent = []

    def send(self, token: str, title: str, body: str) -> None:
        if not token:
            return
        logger.info("Push (not sent) to %s...: %s - %s", token[:12], title, body)
        self.sent.append((token, title, body))


class LocalNotifier:
    """Same-device immediate notification (toast on web, banner on mobile)."""

    def show(self, title: str, body: str) -> None:
        raise NotImplementedError


class Notifier:
    """
    Fans a raised alert out to its audience.

    Every admin with a push token is notified; the concerned driver is
    added for driver-relevant kinds. Delivery is best-effort: failures are
    logged and never undo the persisted alert.
    """

    def __init__(self, store: RecordStore, channel: PushChannel):
        self.store = store
        self.channel = channel

    def admin_tokens(self) -> List[str]:
        rows = self.store.select(
            "profiles", [eq("role", "admin"), not_null("expo_push_token")]
        )
        return [r["expo_push_token"] for r in rows if r.get("expo_push_token")]

    def driver_token(self, driver_id: str) -> Optional[str]:
        row = self.store.get("profiles", driver_id)
        return row.get("expo_push_token") if row else None

    def audience(self, alert: Alert) -> List[str]:
        tokens = self.admin_tokens()
        if alert.kind.notifies_driver and alert.driver_id:
            token = self.driver_token(alert.driver_id)
            if token and token not in tokens:
                tokens.append(token)
        return tokens

    def dispatch(self, alert: Alert) -> int:
        """Send the alert to its audience. Returns the number of successful deliveries."""
        delivered = 0
        for token in self.audience(alert):
            try:
                self.channel.send(token, alert.kind.title, alert.message)
                delivered += 1
            except Exception:
                logger.exception("Push to %s... failed for alert %s", token[:12], alert.id)
        return delivered

"""Device-local queue for driver submissions made while offline."""

import json
import logging
import shutil
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from sqlmodel import Field, Session, SQLModel, create_engine, select

from engine.notify import LocalNotifier
from store import RecordStore

from .storage import ObjectStorage

logger = logging.getLogger("fleetwatch.clients.offline_queue")

TABLES = {
    "fuel_fill": "fuel_fills",
    "cleaning": "cleanings",
    "incident": "incidents",
}

DEFAULT_MAX_ATTEMPTS = 5


class OfflineQueueItem(SQLModel, table=True):
    __tablename__ = "offline_queue"

    id: Optional[int] = Field(default=None, primary_key=True)
    type: str
    payload: str                          # JSON-encoded record
    local_photo_path: Optional[str] = None
    storage_bucket: Optional[str] = None
    storage_path: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    attempts: int = 0
    last_error: Optional[str] = None
    dead_lettered: bool = False


def photo_field(item_type: str, storage_path: str) -> Optional[str]:
    """Record column that receives the uploaded photo path."""
    if item_type == "fuel_fill":
        return "receipt_photo_url"
    if item_type == "cleaning":
        return "receipt_photo_url" if "receipt" in storage_path else None
    if item_type == "incident":
        return "photo_url"
    return None


@dataclass
class DrainResult:
    processed: int = 0
    failed_item_id: Optional[int] = None
    dead_lettered: bool = False


class OfflineQueue:
    """
    FIFO queue persisted in SQLite.

    ``drain`` replays items in creation order: upload the photo (if any),
    insert the record, delete the local photo, then drop the queue row. It
    stops at the first failure so submissions never arrive out of order.
    An item that fails ``max_attempts`` times is dead-lettered: it stays in
    the database for the user to inspect or retry, but no longer blocks
    the items behind it.

    Photo upload and record insert are not atomic; a crash in between
    leaves an orphaned file in storage, which the next drain overwrites.
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        store: RecordStore,
        storage: ObjectStorage,
        photo_dir: Optional[Union[str, Path]] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self.engine = create_engine(f"sqlite:///{db_path}")
        SQLModel.metadata.create_all(self.engine)
        self.store = store
        self.storage = storage
        self.photo_dir = Path(photo_dir) if photo_dir else Path(db_path).parent / "offline_photos"
        self.max_attempts = max_attempts

    def enqueue(
        self,
        item_type: str,
        payload: Dict[str, Any],
        photo_path: Optional[Union[str, Path]] = None,
        bucket: Optional[str] = None,
        storage_path: Optional[str] = None,
    ) -> OfflineQueueItem:
        if item_type not in TABLES:
            raise ValueError(f"Unknown submission type: {item_type}")
        item = OfflineQueueItem(
            type=item_type,
            payload=json.dumps(payload),
            local_photo_path=str(photo_path) if photo_path else None,
            storage_bucket=bucket,
            storage_path=storage_path,
        )
        with Session(self.engine) as session:
            session.add(item)
            session.commit()
            session.refresh(item)
        logger.info("Queued %s #%s", item_type, item.id)
        return item

    def save_photo_locally(self, source: Union[str, Path], filename: str) -> Path:
        """Copy a captured photo into the queue's photo directory."""
        self.photo_dir.mkdir(parents=True, exist_ok=True)
        dest = self.photo_dir / filename
        shutil.copyfile(source, dest)
        return dest

    def items(self, include_dead: bool = False) -> List[OfflineQueueItem]:
        """Pending items, oldest first."""
        with Session(self.engine) as session:
            query = select(OfflineQueueItem)
            if not include_dead:
                query = query.where(OfflineQueueItem.dead_lettered == False)  # noqa: E712
            query = query.order_by(OfflineQueueItem.created_at, OfflineQueueItem.id)
            return list(session.exec(query).all())

    def count(self) -> int:
        return len(self.items())

    def dead_letters(self) -> List[OfflineQueueItem]:
        with Session(self.engine) as session:
            query = (
                select(OfflineQueueItem)
                .where(OfflineQueueItem.dead_lettered == True)  # noqa: E712
                .order_by(OfflineQueueItem.created_at, OfflineQueueItem.id)
            )
            return list(session.exec(query).all())

    def retry(self, item_id: int) -> None:
        """Put a dead-lettered item back in line with a fresh attempt count."""
        with Session(self.engine) as session:
            item = session.get(OfflineQueueItem, item_id)
            if item is None:
                raise KeyError(item_id)
            item.dead_lettered = False
            item.attempts = 0
            item.last_error = None
            session.add(item)
            session.commit()

    def process_item(self, item: OfflineQueueItem) -> None:
        payload = json.loads(item.payload)
        photo = None
        if item.local_photo_path and item.storage_bucket and item.storage_path:
            photo = Path(item.local_photo_path)
            if not photo.exists():
                raise FileNotFoundError(f"Local photo missing: {photo}")
            self.storage.upload(item.storage_bucket, item.storage_path, photo.read_bytes())
            column = photo_field(item.type, item.storage_path)
            if column:
                payload[column] = item.storage_path

        self.store.insert(TABLES[item.type], payload)

        # Only drop the local copy once the record references the upload
        if photo is not None:
            photo.unlink(missing_ok=True)

        with Session(self.engine) as session:
            stored = session.get(OfflineQueueItem, item.id)
            if stored is not None:
                session.delete(stored)
                session.commit()

    def _record_failure(self, item: OfflineQueueItem, error: Exception) -> bool:
        with Session(self.engine) as session:
            stored = session.get(OfflineQueueItem, item.id)
            stored.attempts += 1
            stored.last_error = str(error)[:500]
            stored.dead_lettered = stored.attempts >= self.max_attempts
            session.add(stored)
            session.commit()
            return stored.dead_lettered

    def drain(self) -> DrainResult:
        """Replay pending items in order, stopping at the first failure."""
        result = DrainResult()
        for item in self.items():
            try:
                self.process_item(item)
            except Exception as e:
                result.failed_item_id = item.id
                result.dead_lettered = self._record_failure(item, e)
                if result.dead_lettered:
                    logger.warning("Item #%s dead-lettered after %d attempts: %s", item.id, self.max_attempts, e)
                else:
                    logger.error("Item #%s failed, stopping drain: %s", item.id, e)
                break
            result.processed += 1
        return result


class QueueListener:
    """Drains the queue on connectivity events; drains never overlap."""

    def __init__(
        self,
        queue: OfflineQueue,
        on_synced: Optional[Callable[[int], None]] = None,
        notifier: Optional[LocalNotifier] = None,
    ):
        self.queue = queue
        self.on_synced = on_synced
        self.notifier = notifier
        self._lock = threading.Lock()

    def on_connectivity_change(self, connected: bool) -> int:
        if not connected:
            return 0
        with self._lock:
            result = self.queue.drain()
        if result.processed > 0:
            if self.notifier is not None:
                self.notifier.show("Submissions synced", f"{result.processed} offline submission(s) sent")
            if self.on_synced is not None:
                self.on_synced(result.processed)
        return result.processed

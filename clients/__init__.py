"""
Client-side consumers of the alert core.

- AlertFeed / ToastTray: realtime unread count and toasts
- OfflineQueue / QueueListener: offline submission replay
- SupabaseStorage: photo uploads for queued submissions
"""

from .offline_queue import DrainResult, OfflineQueue, OfflineQueueItem, QueueListener
from .realtime import ADMIN, DRIVER, AlertFeed, ToastTray, badge_text
from .storage import ObjectStorage, SupabaseStorage

__all__ = [
    "DrainResult",
    "OfflineQueue",
    "OfflineQueueItem",
    "QueueListener",
    "ADMIN",
    "DRIVER",
    "AlertFeed",
    "ToastTray",
    "badge_text",
    "ObjectStorage",
    "SupabaseStorage",
]

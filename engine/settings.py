"""Loading and applying the global alert settings."""

import logging
from typing import Optional

from models import THRESHOLD_KEYS, GlobalSettings, load_global_settings_row
from store import RecordStore, not_null

from .errors import SettingsNotFound

logger = logging.getLogger("fleetwatch.engine.settings")

SETTINGS = "alert_settings"


def load_global_settings(store: RecordStore) -> Optional[GlobalSettings]:
    """The singleton settings row, or None when it has not been created."""
    return load_global_settings_row(store.first(SETTINGS))


def apply_global_settings(store: RecordStore) -> int:
    """Copy the global thresholds onto every vehicle. Returns the number of vehicles updated."""
    settings = load_global_settings(store)
    if settings is None:
        raise SettingsNotFound("Global alert settings not found")
    values = {key: settings.get(key) for key in THRESHOLD_KEYS}
    updated = store.update_where("vehicles", [not_null("id")], values)
    logger.info("Applied global thresholds to %d vehicle(s)", updated)
    return updated

"""Configuration: YAML file validated against schema.yaml, with env overrides."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from dateutil import tz
from jsonschema import validate

from engine.notify import EXPO_PUSH_URL

DEFAULT_CONFIG = Path("fleetwatch.yaml")
SCHEMA_PATH = Path(__file__).parent / "schema.yaml"


def load_schema() -> dict:
    """Load the JSON schema from schema.yaml."""
    with open(SCHEMA_PATH) as f:
        return yaml.safe_load(f)


@dataclass
class Settings:
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    store_timeout: float = 20
    push_url: str = EXPO_PUSH_URL
    push_timeout: float = 10
    fixture: Optional[str] = None
    service_key: Optional[str] = None
    daily_hour: int = 6
    monthly_hour: int = 7
    timezone: str = "UTC"
    queue_db_path: str = "offline_queue.db"
    queue_max_attempts: int = 5


def _from_dict(data: Dict[str, Any]) -> Settings:
    supabase = data.get("supabase") or {}
    push = data.get("push") or {}
    schedule = data.get("schedule") or {}
    queue = data.get("offlineQueue") or {}
    defaults = Settings()
    return Settings(
        supabase_url=supabase.get("url"),
        supabase_key=supabase.get("serviceKey"),
        store_timeout=supabase.get("timeout", defaults.store_timeout),
        push_url=push.get("url", defaults.push_url),
        push_timeout=push.get("timeout", defaults.push_timeout),
        fixture=data.get("fixture"),
        service_key=data.get("serviceKey"),
        daily_hour=schedule.get("dailyHour", defaults.daily_hour),
        monthly_hour=schedule.get("monthlyHour", defaults.monthly_hour),
        timezone=schedule.get("timezone", defaults.timezone),
        queue_db_path=queue.get("dbPath", defaults.queue_db_path),
        queue_max_attempts=queue.get("maxAttempts", defaults.queue_max_attempts),
    )


def load_settings(
    filename: Optional[Union[str, Path]] = None, env: Optional[Dict[str, str]] = None
) -> Settings:
    """
    Load settings from ``filename`` (or $FLEETWATCH_CONFIG, or ./fleetwatch.yaml).

    A missing file is fine; every value then comes from defaults and the
    environment. An invalid file raises jsonschema.ValidationError.
    """
    env = os.environ if env is None else env
    path = Path(filename or env.get("FLEETWATCH_CONFIG") or DEFAULT_CONFIG)
    data: Dict[str, Any] = {}
    if path.exists():
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        validate(instance=data, schema=load_schema())

    settings = _from_dict(data)
    settings.supabase_url = env.get("SUPABASE_URL", settings.supabase_url)
    settings.supabase_key = env.get("SUPABASE_SERVICE_ROLE_KEY", settings.supabase_key)
    settings.push_url = env.get("EXPO_PUSH_URL", settings.push_url)
    settings.service_key = env.get("FLEETWATCH_SERVICE_KEY", settings.service_key)
    return settings


def build_store(settings: Settings):
    """The record store described by the settings (fixture file or REST API)."""
    from store import InMemoryRecordStore, RestRecordStore

    if settings.fixture:
        store = InMemoryRecordStore.from_yaml(settings.fixture)
        store.add_unique_index("alerts", ("vehicle_id", "type"), where={"acknowledged": False})
        store.add_unique_index("monthly_reports", ("period",))
        return store
    if not settings.supabase_url or not settings.supabase_key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required")
    return RestRecordStore(settings.supabase_url, settings.supabase_key, settings.store_timeout)


def build_offline_queue(settings: Settings, store=None):
    """Device-side submission queue uploading photos to the platform storage."""
    from clients import OfflineQueue, SupabaseStorage

    store = store if store is not None else build_store(settings)
    if not settings.supabase_url or not settings.supabase_key:
        raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required")
    storage = SupabaseStorage(settings.supabase_url, settings.supabase_key, settings.store_timeout)
    return OfflineQueue(settings.queue_db_path, store, storage, max_attempts=settings.queue_max_attempts)


def build_timezone(settings: Settings):
    """tzinfo for ``schedule.timezone``; raises ValueError for unknown names."""
    zone = tz.gettz(settings.timezone)
    if zone is None:
        raise ValueError(f"Unknown timezone: {settings.timezone}")
    return zone


def build_push_channel(settings: Settings, no_push: bool = False):
    """Expo push, or a logging-only channel for fixture runs and ``no_push``."""
    from engine import ExpoPushChannel, LogPushChannel

    if no_push or settings.fixture:
        return LogPushChannel()
    return ExpoPushChannel(settings.push_url, settings.push_timeout)


def build_engine(settings: Settings, store, channel=None):
    """Alert engine on ``store`` running in the scheduled timezone."""
    from engine import AlertEngine, Notifier

    channel = channel or build_push_channel(settings)
    return AlertEngine(store, Notifier(store, channel), tz=build_timezone(settings))

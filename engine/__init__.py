"""
Alert engine.

- rules: pure evaluators, one per alert kind
- AlertLedger: deduplicated persistence of alerts
- Notifier: push fan-out to admins and drivers
- MonthlyReportAggregator: previous-month cost rollup
- AlertEngine: daily / consumption / monthly passes and the trigger entry point
- FleetSetup: first-run state machine
"""

from .errors import FleetWatchError, SettingsNotFound, SetupError, TriggerError
from .ledger import AlertLedger
from .notify import ExpoPushChannel, LocalNotifier, LogPushChannel, Notifier, PushChannel
from .passes import AlertEngine, PassResult
from .reports import MonthlyReportAggregator
from .settings import apply_global_settings, load_global_settings
from .setup import FleetSetup, SetupState

__all__ = [
    "FleetWatchError",
    "SettingsNotFound",
    "SetupError",
    "TriggerError",
    "AlertLedger",
    "ExpoPushChannel",
    "LocalNotifier",
    "LogPushChannel",
    "Notifier",
    "PushChannel",
    "AlertEngine",
    "PassResult",
    "MonthlyReportAggregator",
    "apply_global_settings",
    "load_global_settings",
    "FleetSetup",
    "SetupState",
]

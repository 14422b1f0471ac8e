"""First-run setup: uninitialized -> admin_created -> operational."""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from models import FALLBACK_THRESHOLDS, THRESHOLD_KEYS
from store import RecordStore, eq

from .errors import SetupError
from .settings import SETTINGS

logger = logging.getLogger("fleetwatch.engine.setup")


class SetupState(Enum):
    UNINITIALIZED = "uninitialized"
    ADMIN_CREATED = "admin_created"
    OPERATIONAL = "operational"


class FleetSetup:
    """
    Explicit setup state for a fleet.

    The state is read once from the store (is there an admin profile, is
    there a settings row?) and afterwards only moves through the methods
    below.
    """

    def __init__(self, store: RecordStore):
        self.store = store
        self.state = self._detect()

    def _detect(self) -> SetupState:
        if self.store.count("profiles", [eq("role", "admin")]) == 0:
            return SetupState.UNINITIALIZED
        if self.store.first(SETTINGS) is None:
            return SetupState.ADMIN_CREATED
        return SetupState.OPERATIONAL

    def register_admin(self, profile_id: str, full_name: str) -> Dict[str, Any]:
        """Create the first admin profile. Only allowed while uninitialized."""
        if self.state is not SetupState.UNINITIALIZED:
            raise SetupError("An administrator already exists")
        profile = self.store.insert(
            "profiles", {"id": profile_id, "full_name": full_name, "role": "admin"}
        )
        self.state = SetupState.ADMIN_CREATED
        logger.info("First administrator %s created", profile_id)
        return profile

    def initialize_settings(self, values: Optional[Dict[str, float]] = None) -> Dict[str, Any]:
        """Create the global settings row (fallback defaults, overridden by ``values``)."""
        if self.state is not SetupState.ADMIN_CREATED:
            raise SetupError(f"Cannot initialize settings from state {self.state.value}")
        row = dict(FALLBACK_THRESHOLDS)
        for key, value in (values or {}).items():
            if key not in THRESHOLD_KEYS:
                raise SetupError(f"Unknown threshold: {key}")
            row[key] = value
        settings = self.store.insert(SETTINGS, row)
        self.state = SetupState.OPERATIONAL
        return settings

    @property
    def is_operational(self) -> bool:
        return self.state is SetupState.OPERATIONAL

#!/usr/bin/env python3
"""Tests for global settings propagation and first-run setup."""
import pytest

from engine import (
    FleetSetup,
    SettingsNotFound,
    SetupError,
    SetupState,
    apply_global_settings,
    load_global_settings,
)
from models import FALLBACK_THRESHOLDS, INSPECTION_DAYS, NO_FILL_DAYS
from store import InMemoryRecordStore


class TestGlobalSettings:
    """Tests for load_global_settings and apply_global_settings."""

    def test_missing_row(self):
        assert load_global_settings(InMemoryRecordStore()) is None

    def test_loads_row(self):
        store = InMemoryRecordStore({"alert_settings": [{"id": "s1", INSPECTION_DAYS: 21}]})
        settings = load_global_settings(store)
        assert settings.id == "s1"
        assert settings.get(INSPECTION_DAYS) == 21
        assert settings.get(NO_FILL_DAYS) == FALLBACK_THRESHOLDS[NO_FILL_DAYS]

    def test_apply_overwrites_every_vehicle(self):
        store = InMemoryRecordStore(
            {
                "alert_settings": [{"id": "s1", INSPECTION_DAYS: 21, NO_FILL_DAYS: 10}],
                "vehicles": [
                    {"id": "v1", "plate": "AA-001-AA", INSPECTION_DAYS: 45},
                    {"id": "v2", "plate": "BB-002-BB"},
                ],
            }
        )
        assert apply_global_settings(store) == 2
        for row in store.select("vehicles"):
            assert row[INSPECTION_DAYS] == 21
            assert row[NO_FILL_DAYS] == 10

    def test_apply_without_settings_raises(self):
        store = InMemoryRecordStore({"vehicles": [{"id": "v1"}]})
        with pytest.raises(SettingsNotFound):
            apply_global_settings(store)


class TestFleetSetup:
    """Tests for the FleetSetup state machine."""

    def test_fresh_store_is_uninitialized(self):
        assert FleetSetup(InMemoryRecordStore()).state is SetupState.UNINITIALIZED

    def test_full_sequence(self):
        store = InMemoryRecordStore()
        setup = FleetSetup(store)
        profile = setup.register_admin("u1", "Camille Martin")
        assert profile["role"] == "admin"
        assert setup.state is SetupState.ADMIN_CREATED
        settings = setup.initialize_settings({INSPECTION_DAYS: 45})
        assert settings[INSPECTION_DAYS] == 45
        assert settings[NO_FILL_DAYS] == FALLBACK_THRESHOLDS[NO_FILL_DAYS]
        assert setup.is_operational
        assert FleetSetup(store).state is SetupState.OPERATIONAL

    def test_second_admin_rejected(self):
        store = InMemoryRecordStore({"profiles": [{"id": "u1", "role": "admin"}]})
        setup = FleetSetup(store)
        assert setup.state is SetupState.ADMIN_CREATED
        with pytest.raises(SetupError):
            setup.register_admin("u2", "Someone Else")
        assert store.count("profiles") == 1

    def test_settings_before_admin_rejected(self):
        with pytest.raises(SetupError):
            FleetSetup(InMemoryRecordStore()).initialize_settings()

    def test_settings_only_once(self):
        store = InMemoryRecordStore({"profiles": [{"id": "u1", "role": "admin"}]})
        setup = FleetSetup(store)
        setup.initialize_settings()
        with pytest.raises(SetupError):
            setup.initialize_settings()
        assert store.count("alert_settings") == 1

    def test_unknown_threshold_rejected(self):
        store = InMemoryRecordStore({"profiles": [{"id": "u1", "role": "admin"}]})
        with pytest.raises(SetupError):
            FleetSetup(store).initialize_settings({"alert_tyres_days_before": 3})
        assert store.count("alert_settings") == 0

    def test_drivers_do_not_count_as_admin(self):
        store = InMemoryRecordStore({"profiles": [{"id": "d1", "role": "driver"}]})
        assert FleetSetup(store).state is SetupState.UNINITIALIZED

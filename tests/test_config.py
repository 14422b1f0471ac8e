#!/usr/bin/env python3
"""Tests for configuration loading and validation."""
from datetime import datetime, timezone

import pytest
from jsonschema import ValidationError

from config import (
    Settings,
    build_engine,
    build_offline_queue,
    build_push_channel,
    build_store,
    build_timezone,
    load_schema,
    load_settings,
)
from engine import ExpoPushChannel, LogPushChannel
from store import DuplicateRecord, InMemoryRecordStore, RestRecordStore
from validate_config import main, validate_config_file


class TestLoadSchema:
    """Tests for load_schema function."""

    def test_has_expected_sections(self):
        schema = load_schema()
        assert {"supabase", "push", "schedule", "offlineQueue"} <= set(schema["properties"])


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults_without_file(self, tmp_path):
        settings = load_settings(tmp_path / "missing.yaml", env={})
        assert settings == Settings()

    def test_reads_file(self, tmp_path):
        path = tmp_path / "fleetwatch.yaml"
        path.write_text("""
supabase:
  url: https://fleet.example
  serviceKey: abc
schedule:
  dailyHour: 5
  timezone: Europe/Paris
offlineQueue:
  maxAttempts: 3
""")
        settings = load_settings(path, env={})
        assert settings.supabase_url == "https://fleet.example"
        assert settings.supabase_key == "abc"
        assert settings.daily_hour == 5
        assert settings.monthly_hour == 7
        assert settings.timezone == "Europe/Paris"
        assert settings.queue_max_attempts == 3

    def test_env_overrides_file(self, tmp_path):
        path = tmp_path / "fleetwatch.yaml"
        path.write_text("supabase:\n  url: https://file.example\n")
        env = {
            "SUPABASE_URL": "https://env.example",
            "SUPABASE_SERVICE_ROLE_KEY": "envkey",
            "FLEETWATCH_SERVICE_KEY": "admin-key",
        }
        settings = load_settings(path, env=env)
        assert settings.supabase_url == "https://env.example"
        assert settings.supabase_key == "envkey"
        assert settings.service_key == "admin-key"

    def test_config_path_from_env(self, tmp_path):
        path = tmp_path / "other.yaml"
        path.write_text("fixture: fleet.yaml\n")
        assert load_settings(env={"FLEETWATCH_CONFIG": str(path)}).fixture == "fleet.yaml"

    def test_invalid_file_raises(self, tmp_path):
        path = tmp_path / "fleetwatch.yaml"
        path.write_text("schedule:\n  dailyHour: 25\n")
        with pytest.raises(ValidationError):
            load_settings(path, env={})


class TestBuildStore:
    """Tests for build_store."""

    def test_fixture_store_has_unique_indexes(self, tmp_path):
        fixture = tmp_path / "fleet.yaml"
        fixture.write_text("vehicles:\n  - id: v1\n    plate: AA-001-AA\n")
        store = build_store(Settings(fixture=str(fixture)))
        assert isinstance(store, InMemoryRecordStore)
        store.insert("monthly_reports", {"period": "2025-02"})
        with pytest.raises(DuplicateRecord):
            store.insert("monthly_reports", {"period": "2025-02"})

    def test_rest_store(self):
        store = build_store(Settings(supabase_url="https://fleet.example", supabase_key="k"))
        assert isinstance(store, RestRecordStore)
        assert store.base_url == "https://fleet.example/rest/v1"

    def test_missing_credentials(self):
        with pytest.raises(ValueError):
            build_store(Settings())

    def test_offline_queue_from_settings(self, tmp_path):
        settings = Settings(
            supabase_url="https://fleet.example",
            supabase_key="k",
            queue_db_path=str(tmp_path / "queue.db"),
            queue_max_attempts=3,
        )
        queue = build_offline_queue(settings, InMemoryRecordStore())
        assert queue.max_attempts == 3
        assert queue.storage.base_url == "https://fleet.example/storage/v1/object"
        assert queue.count() == 0


class TestBuildEngine:
    """Tests for build_timezone, build_push_channel and build_engine."""

    def test_unknown_timezone(self):
        with pytest.raises(ValueError):
            build_timezone(Settings(timezone="Mars/Olympus"))

    def test_fixture_runs_never_push(self):
        assert isinstance(build_push_channel(Settings(fixture="fleet.yaml")), LogPushChannel)
        assert isinstance(build_push_channel(Settings(), no_push=True), LogPushChannel)
        assert isinstance(build_push_channel(Settings()), ExpoPushChannel)

    def test_engine_uses_schedule_timezone(self):
        engine = build_engine(Settings(timezone="Pacific/Auckland"), InMemoryRecordStore())
        local = engine.local_now(datetime(2026, 9, 30, 18, 0, tzinfo=timezone.utc))
        assert (local.year, local.month, local.day, local.hour) == (2026, 10, 1, 7)


class TestValidateConfigFile:
    """Tests for validate_config_file and main."""

    def test_valid_returns_no_errors(self, tmp_path):
        path = tmp_path / "valid.yaml"
        path.write_text("supabase:\n  url: https://fleet.example\n  serviceKey: k\npush:\n  timeout: 5\n")
        assert validate_config_file(path, env={}) == []

    def test_credentials_from_env(self, tmp_path):
        path = tmp_path / "env.yaml"
        path.write_text("push:\n  timeout: 5\n")
        env = {"SUPABASE_URL": "https://fleet.example", "SUPABASE_SERVICE_ROLE_KEY": "k"}
        assert validate_config_file(path, env=env) == []
        errors = validate_config_file(path, env={})
        assert len(errors) == 2
        assert errors[0].startswith("No supabase.url")

    def test_unknown_key_reports_error(self, tmp_path):
        path = tmp_path / "invalid.yaml"
        path.write_text("supabase:\n  region: eu\n")
        errors = validate_config_file(path, env={})
        assert any("Schema validation error" in e for e in errors)
        assert any("supabase" in e for e in errors)

    def test_yaml_error(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("supabase: [unclosed\n")
        errors = validate_config_file(path, env={})
        assert errors[0].startswith("YAML parse error")

    def test_missing_file(self, tmp_path):
        errors = validate_config_file(tmp_path / "absent.yaml", env={})
        assert errors[0].startswith("File not found")

    def test_unknown_timezone_and_missing_fixture(self, tmp_path):
        path = tmp_path / "fleetwatch.yaml"
        path.write_text(f"fixture: {tmp_path / 'nope.yaml'}\nschedule:\n  timezone: Mars/Olympus\n")
        errors = validate_config_file(path, env={})
        assert errors == [
            "Unknown timezone: Mars/Olympus",
            f"Fixture file not found: {tmp_path / 'nope.yaml'}",
        ]

    def test_main_exit_codes(self, tmp_path, capsys):
        fixture = tmp_path / "fleet.yaml"
        fixture.write_text("vehicles: []\n")
        good = tmp_path / "good.yaml"
        good.write_text(f"fixture: {fixture}\n")
        bad = tmp_path / "bad.yaml"
        bad.write_text("offlineQueue:\n  maxAttempts: 0\n")
        assert main([str(good)]) == 0
        assert main([str(good), str(bad)]) == 1
        out = capsys.readouterr().out
        assert "OK: good.yaml" in out
        assert "FAIL: bad.yaml" in out

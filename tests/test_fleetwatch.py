#!/usr/bin/env python3
"""Tests for the fleetwatch CLI formatting helpers and commands."""
import argparse
import logging
from datetime import datetime, timezone
from unittest import mock

import pytest
from dateutil import tz

from config import Settings
from engine import LogPushChannel
from fleetwatch import (
    format_threshold,
    format_timestamp,
    main,
    make_alert_table,
    make_engine,
    parse_as_of,
    truncate,
)
from models import Alert, AlertKind
from store import InMemoryRecordStore

FIXTURE = """
alert_settings:
  - id: s1
    alert_inspection_days_before: 30
    no_fill_alert_days: 7
vehicles:
  - id: v1
    plate: AA-001-AA
    next_inspection_date: 2025-03-20
    fuel_alert_threshold_l100: 9.5
  - id: v2
    plate: BB-002-BB
fuel_fills:
  - id: f1
    vehicle_id: v2
    filled_at: "2025-02-10T08:00:00Z"
    km_at_fill: 10000
    liters: 40
    price_ttc: 70
  - id: f2
    vehicle_id: v2
    filled_at: "2025-02-12T08:00:00Z"
    km_at_fill: 10200
    liters: 30
    price_ttc: 52.5
alerts:
  - id: 3f9d2c1e-0000-0000-0000-000000000001
    vehicle_id: v1
    type: no_fill
    message: No fuel fill for AA-001-AA in 9 day(s)
    triggered_at: "2025-02-28T06:00:00Z"
    acknowledged: false
"""

ADMIN_PROFILE = """
profiles:
  - id: a1
    role: admin
    expo_push_token: "ExponentPushToken[admin-a1]"
"""


@pytest.fixture
def config(tmp_path):
    fixture = tmp_path / "fleet.yaml"
    fixture.write_text(FIXTURE)
    path = tmp_path / "fleetwatch.yaml"
    path.write_text(f"fixture: {fixture}\n")
    return path


class TestFormatting:
    """Tests for formatting helpers."""

    def test_format_timestamp(self):
        assert format_timestamp(datetime(2025, 3, 1, 6, 30, tzinfo=timezone.utc)) == "2025-03-01 06:30"
        assert format_timestamp(None) == "-"

    def test_format_threshold(self):
        assert format_threshold(500) == "500"
        assert format_threshold(12.0) == "12"
        assert format_threshold(9.5) == "9.5"

    def test_truncate(self):
        assert truncate("short") == "short"
        assert truncate("x" * 100, 10) == "xxxxxxx..."
        assert truncate(None) == "-"

    def test_parse_as_of(self):
        assert parse_as_of("2025-03-01") == datetime(2025, 3, 1, tzinfo=timezone.utc)
        assert parse_as_of(None) is None

    def test_parse_as_of_in_timezone(self):
        parsed = parse_as_of("2025-03-01", tz.gettz("America/New_York"))
        assert parsed.astimezone(timezone.utc) == datetime(2025, 3, 1, 5, tzinfo=timezone.utc)
        # an explicit offset wins
        assert parse_as_of("2025-03-01T00:00:00+00:00", tz.gettz("America/New_York")).utcoffset().total_seconds() == 0

    def test_make_alert_table(self):
        alerts = [
            Alert("3f9d2c1e-aaaa", "v1", AlertKind.NO_FILL, "No fill"),
            Alert("7b1e0000-bbbb", None, AlertKind.MONTHLY_REPORT, "Report"),
        ]
        rows = make_alert_table(alerts, {"v1": "AA-001-AA"})
        assert rows[0] == ["3f9d2c1e", "-", "AA-001-AA", "no_fill", "No fill"]
        assert rows[1][2] == "fleet"


class TestCommands:
    """Tests for CLI commands against a fixture store."""

    def test_check(self, config, capsys):
        assert main(["--config", str(config), "check", "--as-of", "2025-03-01"]) == 0
        out = capsys.readouterr().out
        assert "Pass: daily" in out
        assert "ct_expiry" in out

    def test_consumption(self, config, capsys):
        assert main(["--config", str(config), "consumption", "f2"]) == 0
        out = capsys.readouterr().out
        assert "Raised: 1" in out

    def test_report(self, config, capsys):
        assert main(["--config", str(config), "report", "--as-of", "2025-03-01"]) == 0
        out = capsys.readouterr().out
        assert "Period: 2025-02" in out
        assert "Grand total: 122.50" in out

    def test_alerts(self, config, capsys):
        assert main(["--config", str(config), "alerts"]) == 0
        out = capsys.readouterr().out
        assert "Open alerts: 1" in out
        assert "AA-001-AA" in out

    def test_alerts_kind_filter(self, config, capsys):
        assert main(["--config", str(config), "alerts", "--kind", "incident"]) == 0
        assert "No open alerts." in capsys.readouterr().out

    def test_ack(self, config, capsys):
        assert main(["--config", str(config), "ack", "3f9d2c1e-0000-0000-0000-000000000001"]) == 0
        assert "Acknowledged: no_fill" in capsys.readouterr().out

    def test_ack_unknown(self, config, capsys):
        assert main(["--config", str(config), "ack", "nope"]) == 1
        assert "Error:" in capsys.readouterr().out

    def test_thresholds(self, config, capsys):
        assert main(["--config", str(config), "thresholds"]) == 0
        out = capsys.readouterr().out
        assert "9.5*" in out
        assert "BB-002-BB" in out

    def test_apply_settings_dry_run(self, config, capsys):
        assert main(["--config", str(config), "apply-settings", "--dry-run"]) == 0
        assert "Would update 2 vehicle(s)" in capsys.readouterr().out

    def test_apply_settings(self, config, capsys):
        assert main(["--config", str(config), "apply-settings"]) == 0
        assert "Updated 2 vehicle(s)." in capsys.readouterr().out

    def test_invalid_config(self, tmp_path, capsys):
        path = tmp_path / "fleetwatch.yaml"
        path.write_text("bogus: true\n")
        assert main(["--config", str(path), "alerts"]) == 1
        assert "invalid config" in capsys.readouterr().out


class TestPushChannel:
    """Fixture runs and --no-push never reach the push service."""

    def test_fixture_run_logs_pushes(self, tmp_path, caplog):
        fixture = tmp_path / "fleet.yaml"
        fixture.write_text(FIXTURE + ADMIN_PROFILE)
        path = tmp_path / "fleetwatch.yaml"
        path.write_text(f"fixture: {fixture}\n")
        caplog.set_level(logging.INFO, logger="fleetwatch.engine.notify")
        with mock.patch("engine.notify.ExpoPushChannel.send") as send:
            assert main(["--config", str(path), "check", "--as-of", "2025-03-01"]) == 0
        send.assert_not_called()
        assert "Push (not sent) to ExponentPush" in caplog.text

    def test_no_push_flag(self):
        settings = Settings(supabase_url="https://fleet.example", supabase_key="k")
        engine = make_engine(argparse.Namespace(no_push=True), InMemoryRecordStore(), settings)
        assert isinstance(engine.notifier.channel, LogPushChannel)

#!/usr/bin/env python3
"""Tests for row <-> model conversion."""
from datetime import date, datetime, timezone

import pytest

from models import (
    AlertCandidate,
    AlertKind,
    NoFillPayload,
    alert_to_row,
    load_alert,
    load_fuel_fill,
    load_monthly_report,
    load_vehicle,
    parse_date,
    parse_datetime,
)
from models.payloads import MaintenanceDuePayload, MaintenanceTrigger


class TestParse:
    """Tests for parse_date and parse_datetime."""

    def test_parse_date(self):
        assert parse_date("2025-03-20") == date(2025, 3, 20)
        assert parse_date("2025-03-20T10:00:00Z") == date(2025, 3, 20)
        assert parse_date(date(2025, 3, 20)) == date(2025, 3, 20)
        assert parse_date(None) is None
        assert parse_date("") is None

    def test_naive_datetime_is_utc(self):
        assert parse_datetime("2025-03-20T10:00:00") == datetime(2025, 3, 20, 10, tzinfo=timezone.utc)

    def test_offset_preserved(self):
        parsed = parse_datetime("2025-03-20T10:00:00+02:00")
        assert parsed == datetime(2025, 3, 20, 8, tzinfo=timezone.utc)


class TestLoadVehicle:
    """Tests for load_vehicle."""

    def test_full_row(self):
        vehicle = load_vehicle(
            {
                "id": "v1",
                "plate": "AA-001-AA",
                "driver_id": "d1",
                "next_inspection_date": "2025-03-20",
                "next_maintenance_km": "60000",
                "alert_inspection_days_before": 45,
                "no_fill_alert_days": None,
                "documents": {"insurance": {"expiry": "2025-06-30"}, "scan": {"url": "x"}},
            }
        )
        assert vehicle.plate == "AA-001-AA"
        assert vehicle.next_inspection_date == date(2025, 3, 20)
        assert vehicle.next_maintenance_km == 60000.0
        assert vehicle.overrides == {"alert_inspection_days_before": 45}
        assert vehicle.expiring_documents() == [("insurance", date(2025, 6, 30))]

    def test_minimal_row(self):
        vehicle = load_vehicle({"id": "v1"})
        assert vehicle.overrides == {}
        assert vehicle.documents == {}
        assert vehicle.next_maintenance_km is None


class TestLoadFuelFill:
    """Tests for load_fuel_fill."""

    def test_numbers_coerced(self):
        fill = load_fuel_fill(
            {"id": "f1", "vehicle_id": "v1", "filled_at": "2025-02-20T08:00:00Z", "liters": "40.5", "km_at_fill": 59000}
        )
        assert fill.liters == 40.5
        assert fill.km_at_fill == 59000.0
        assert fill.filled_at.tzinfo is not None


class TestAlertRows:
    """Tests for alert_to_row and load_alert."""

    def test_row_layout(self):
        candidate = AlertCandidate(
            "v1", "Maintenance due", MaintenanceDuePayload(MaintenanceTrigger.KM, km_remaining=400.0), driver_id="d1"
        )
        row = alert_to_row(candidate, datetime(2025, 3, 1, 6, tzinfo=timezone.utc))
        assert row == {
            "vehicle_id": "v1",
            "type": "maintenance_due",
            "message": "Maintenance due",
            "payload": {"trigger": "km", "km_remaining": 400.0},
            "triggered_at": "2025-03-01T06:00:00+00:00",
            "acknowledged": False,
        }

    def test_load_alert(self):
        alert = load_alert(
            {"id": "a1", "vehicle_id": None, "type": "monthly_report", "message": "m", "triggered_at": "2025-03-01T07:00:00Z"}
        )
        assert alert.kind is AlertKind.MONTHLY_REPORT
        assert alert.is_fleet_level
        assert alert.acknowledged is False

    def test_unknown_type_rejected(self):
        with pytest.raises(ValueError):
            load_alert({"id": "a1", "type": "tyre_pressure"})

    def test_untyped_payload_rejected(self):
        with pytest.raises(TypeError):
            AlertCandidate("v1", "No fill", {"days_since": 9})

    def test_payload_kind(self):
        assert AlertCandidate("v1", "No fill", NoFillPayload(9)).dedup_key == ("v1", AlertKind.NO_FILL)


class TestLoadMonthlyReport:
    """Tests for load_monthly_report."""

    def test_reads_nested_data(self):
        report = load_monthly_report(
            {
                "id": "r1",
                "period": "2025-02",
                "data": {
                    "vehicles_count": 2,
                    "fuel": {"total_ht": 150, "total_ttc": 180, "total_liters": 100, "fills_count": 2},
                    "cleaning": {"total_ttc": 25, "count": 1},
                    "maintenance": {"total": 300, "count": 1},
                    "incidents": {"total_amount": 135, "count": 2},
                },
            }
        )
        assert report.grand_total == 640
        assert report.incidents.count == 2

    def test_empty_data(self):
        report = load_monthly_report({"period": "2025-02", "data": None})
        assert report.grand_total == 0
        assert report.id is None

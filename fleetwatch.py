#!/usr/bin/env python3
"""
Command line interface for the fleet alert engine.

Commands:
  check          - Run the daily alert pass
  consumption    - Check consumption for one fuel fill
  report         - Generate last month's cost report
  alerts         - List open (unacknowledged) alerts
  ack            - Acknowledge an alert
  thresholds     - Show effective thresholds per vehicle
  apply-settings - Copy global thresholds onto every vehicle
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from jsonschema import ValidationError
from tabulate import tabulate

from config import build_engine, build_push_channel, build_store, build_timezone, load_settings
from engine import (
    AlertEngine,
    AlertLedger,
    FleetWatchError,
    PassResult,
    apply_global_settings,
    load_global_settings,
)
from models import THRESHOLD_KEYS, Alert, load_vehicle, previous_month_window, resolve
from store import StoreError

# =============================================================================
# Formatting helpers
# =============================================================================

THRESHOLD_LABELS = {
    "alert_inspection_days_before": "Inspection (d)",
    "alert_maintenance_days_before": "Maint. (d)",
    "alert_maintenance_km_before": "Maint. (km)",
    "fuel_alert_threshold_l100": "L/100km",
    "no_fill_alert_days": "No fill (d)",
}


def format_timestamp(value: Optional[datetime]) -> str:
    """Format a timestamp for display (UTC, minute precision)."""
    if value is None:
        return "-"
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M")


def format_threshold(value: float) -> str:
    """Drop the decimal part of whole numbers."""
    if float(value).is_integer():
        return f"{value:,.0f}"
    return f"{value:,.1f}"


def truncate(text: Optional[str], max_len: int = 60) -> str:
    """Truncate text with ellipsis if too long."""
    if text is None:
        return "-"
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."


def parse_as_of(value: Optional[str], tz=timezone.utc) -> Optional[datetime]:
    """Parse --as-of (YYYY-MM-DD or full ISO timestamp); values without an offset are in ``tz``."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=tz)


def make_alert_table(alerts: List[Alert], plates: dict) -> List[List[str]]:
    """Convert alerts to table rows."""
    rows = []
    for alert in alerts:
        rows.append(
            [
                str(alert.id)[:8],
                format_timestamp(alert.triggered_at),
                plates.get(alert.vehicle_id, "fleet") if alert.vehicle_id else "fleet",
                alert.kind.value,
                truncate(alert.message),
            ]
        )
    return rows


def print_result(result: PassResult) -> None:
    print(f"Pass: {result.kind}")
    print(f"Candidates: {result.candidates}")
    print(f"Raised: {result.raised_count}")
    print(f"Suppressed (already open): {result.suppressed}")
    if result.raised:
        kinds = sorted(set(result.raised))
        print()
        print(tabulate([[k, result.raised.count(k)] for k in kinds], headers=["Kind", "Raised"], tablefmt="simple"))


# =============================================================================
# Commands
# =============================================================================


def make_engine(args, store, settings) -> AlertEngine:
    return build_engine(settings, store, build_push_channel(settings, args.no_push))


def cmd_check(args, store, settings):
    """Run the daily alert pass."""
    engine = make_engine(args, store, settings)
    result = engine.run_daily(parse_as_of(args.as_of, engine.tz))
    print_result(result)
    return 0


def cmd_consumption(args, store, settings):
    """Check consumption for one fuel fill."""
    engine = make_engine(args, store, settings)
    result = engine.check_high_consumption(args.fuel_fill_id, parse_as_of(args.as_of, engine.tz))
    print_result(result)
    return 0


def cmd_report(args, store, settings):
    """Generate last month's report and print its totals."""
    engine = make_engine(args, store, settings)
    now = engine.local_now(parse_as_of(args.as_of, engine.tz))
    result = engine.generate_monthly_report(now)
    period, _, _ = previous_month_window(now)
    report = engine.reports.existing(period)

    print(f"Period: {report.period}")
    print(f"Vehicles: {report.vehicles_count}")
    print()
    rows = [
        ["Fuel", report.fuel.fills_count, f"{report.fuel.total_ttc:,.2f}"],
        ["Cleaning", report.cleaning.count, f"{report.cleaning.total:,.2f}"],
        ["Maintenance", report.maintenance.count, f"{report.maintenance.total:,.2f}"],
        ["Incidents", report.incidents.count, f"{report.incidents.total:,.2f}"],
    ]
    print(tabulate(rows, headers=["Category", "Count", "Total"], tablefmt="simple"))
    print()
    print(f"Grand total: {report.grand_total:,.2f}")
    if result.raised_count == 0:
        print("(report already existed, no alert raised)")
    return 0


def cmd_alerts(args, store, settings):
    """List open alerts."""
    alerts = AlertLedger(store).open_alerts(args.vehicle)
    if args.kind:
        alerts = [a for a in alerts if a.kind.value == args.kind]
    plates = {row["id"]: row.get("plate") for row in store.select("vehicles")}

    print(f"Open alerts: {len(alerts)}")
    print()
    if not alerts:
        print("No open alerts.")
        return 0
    headers = ["Id", "Triggered", "Vehicle", "Kind", "Message"]
    print(tabulate(make_alert_table(alerts, plates), headers=headers, tablefmt="simple"))
    return 0


def cmd_ack(args, store, settings):
    """Acknowledge an alert."""
    if args.dry_run:
        print(f"Would acknowledge alert {args.alert_id}")
        print("(dry run - no changes made)")
        return 0
    alert = AlertLedger(store).acknowledge(args.alert_id)
    print(f"Acknowledged: {alert.kind.value} - {alert.message}")
    return 0


def cmd_thresholds(args, store, settings):
    """Show effective thresholds per vehicle (override or global default)."""
    global_settings = load_global_settings(store)
    if global_settings is None:
        print("Global settings: not set (using fallback defaults)")
    rows = []
    for row in store.select("vehicles", order="plate"):
        vehicle = load_vehicle(row)
        if args.vehicle and vehicle.id != args.vehicle:
            continue
        cells = [vehicle.plate]
        for key in THRESHOLD_KEYS:
            value = format_threshold(resolve(vehicle, key, global_settings))
            cells.append(value + ("*" if key in vehicle.overrides else ""))
        rows.append(cells)

    headers = ["Plate"] + [THRESHOLD_LABELS[k] for k in THRESHOLD_KEYS]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    print()
    print("* vehicle override")
    return 0


def cmd_apply_settings(args, store, settings):
    """Copy global thresholds onto every vehicle."""
    if args.dry_run:
        print(f"Would update {store.count('vehicles')} vehicle(s)")
        print("(dry run - no changes made)")
        return 0
    updated = apply_global_settings(store)
    print(f"Updated {updated} vehicle(s).")
    return 0


# =============================================================================
# Main
# =============================================================================


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Fleet alert engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s check
  %(prog)s --config fleet.yaml check --as-of 2025-03-01
  %(prog)s consumption 5b0c6a1e-...
  %(prog)s report
  %(prog)s alerts --kind ct_expiry
  %(prog)s ack 5b0c6a1e-...
  %(prog)s thresholds
""",
    )
    parser.add_argument("--config", type=Path, help="Path to config YAML (default: fleetwatch.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--no-push", action="store_true", help="Log push notifications instead of sending them")

    subparsers = parser.add_subparsers(dest="command", required=True)

    check_parser = subparsers.add_parser("check", help="Run the daily alert pass")
    check_parser.add_argument("--as-of", type=str, help="Evaluate as of this date/time (default: now)")

    consumption_parser = subparsers.add_parser("consumption", help="Check consumption for a fuel fill")
    consumption_parser.add_argument("fuel_fill_id", type=str, help="Id of the inserted fuel fill")
    consumption_parser.add_argument("--as-of", type=str, help="Evaluate as of this date/time")

    report_parser = subparsers.add_parser("report", help="Generate last month's report")
    report_parser.add_argument("--as-of", type=str, help="Report on the month before this date")

    alerts_parser = subparsers.add_parser("alerts", help="List open alerts")
    alerts_parser.add_argument("--vehicle", type=str, help="Only alerts for this vehicle id")
    alerts_parser.add_argument("--kind", type=str, help="Only alerts of this kind (e.g. 'no_fill')")

    ack_parser = subparsers.add_parser("ack", help="Acknowledge an alert")
    ack_parser.add_argument("alert_id", type=str, help="Alert id")
    ack_parser.add_argument("--dry-run", action="store_true", help="Show what would change without saving")

    thresholds_parser = subparsers.add_parser("thresholds", help="Show effective thresholds")
    thresholds_parser.add_argument("--vehicle", type=str, help="Only this vehicle id")

    apply_parser = subparsers.add_parser("apply-settings", help="Copy global thresholds to all vehicles")
    apply_parser.add_argument("--dry-run", action="store_true", help="Show what would change without saving")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.config)
        build_timezone(settings)
        store = build_store(settings)
    except ValidationError as e:
        print(f"Error: invalid config: {e.message}")
        return 1
    except (ValueError, OSError) as e:
        print(f"Error: {e}")
        return 1

    handlers = {
        "check": cmd_check,
        "consumption": cmd_consumption,
        "report": cmd_report,
        "alerts": cmd_alerts,
        "ack": cmd_ack,
        "thresholds": cmd_thresholds,
        "apply-settings": cmd_apply_settings,
    }
    try:
        return handlers[args.command](args, store, settings)
    except (FleetWatchError, StoreError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)

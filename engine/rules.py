"""
Rule evaluators.

Each evaluator is a pure function of fleet state, thresholds and ``now``
and returns an AlertCandidate or None. Missing prerequisite data (no fill
history, no due date) yields None, never an exception. Repeated runs are
harmless: the ledger keeps at most one open alert per (vehicle, kind).
"""

from datetime import datetime, timedelta
from typing import List, Optional

from models import (
    AlertCandidate,
    ConsumptionPayload,
    CustomReminder,
    DocumentExpiryPayload,
    DriverAssignment,
    FuelFill,
    Incident,
    IncidentPayload,
    InspectionPayload,
    MaintenanceDuePayload,
    MaintenanceTrigger,
    NoFillPayload,
    ReminderPayload,
    ReplacementPayload,
    Vehicle,
    consumption_l100,
    days_since,
    days_until,
)
from models.thresholds import DOCUMENT_EXPIRY_DAYS, REMINDER_DAYS


def check_inspection(
    vehicle: Vehicle, days_before: float, now: datetime
) -> Optional[AlertCandidate]:
    """Inspection (CT) expiring within ``days_before`` days, or already past."""
    if vehicle.next_inspection_date is None:
        return None
    remaining = days_until(vehicle.next_inspection_date, now)
    if remaining > days_before:
        return None
    return AlertCandidate(
        vehicle.id,
        f"Inspection for {vehicle.plate} expires in {remaining} day(s) "
        f"({vehicle.next_inspection_date.isoformat()})",
        InspectionPayload(days_remaining=remaining),
        driver_id=vehicle.driver_id,
    )


def check_maintenance_date(
    vehicle: Vehicle, days_before: float, now: datetime
) -> Optional[AlertCandidate]:
    """Scheduled maintenance date within ``days_before`` days."""
    if vehicle.next_maintenance_date is None:
        return None
    remaining = days_until(vehicle.next_maintenance_date, now)
    if remaining > days_before:
        return None
    return AlertCandidate(
        vehicle.id,
        f"Maintenance for {vehicle.plate} due in {remaining} day(s) "
        f"({vehicle.next_maintenance_date.isoformat()})",
        MaintenanceDuePayload(MaintenanceTrigger.DATE, days_remaining=remaining),
        driver_id=vehicle.driver_id,
    )


def check_maintenance_km(
    vehicle: Vehicle, last_fill: Optional[FuelFill], km_before: float
) -> Optional[AlertCandidate]:
    """Odometer (from the latest fill) within ``km_before`` of the maintenance mileage."""
    if not vehicle.next_maintenance_km:
        return None
    if last_fill is None or last_fill.km_at_fill is None:
        return None
    if last_fill.km_at_fill <= vehicle.next_maintenance_km - km_before:
        return None
    remaining = vehicle.next_maintenance_km - last_fill.km_at_fill
    return AlertCandidate(
        vehicle.id,
        f"Maintenance for {vehicle.plate} due in {remaining:,.0f} km "
        f"(at {vehicle.next_maintenance_km:,.0f} km)",
        MaintenanceDuePayload(MaintenanceTrigger.KM, km_remaining=remaining),
        driver_id=vehicle.driver_id,
    )


def check_consumption(
    vehicle: Vehicle,
    fill: FuelFill,
    previous_fill: Optional[FuelFill],
    threshold: float,
) -> Optional[AlertCandidate]:
    """
    Consumption between ``previous_fill`` and ``fill`` above ``threshold`` L/100km.

    A non-positive distance (odometer rollback, repeated reading) is
    treated as bad data and skipped.
    """
    if not fill.liters or fill.km_at_fill is None:
        return None
    if previous_fill is None or previous_fill.km_at_fill is None:
        return None
    consumption = consumption_l100(fill.liters, fill.km_at_fill - previous_fill.km_at_fill)
    if consumption is None or consumption <= threshold:
        return None
    return AlertCandidate(
        vehicle.id,
        f"High consumption on {vehicle.plate}: {consumption:.1f} L/100km "
        f"(threshold {threshold} L/100km)",
        ConsumptionPayload(round(consumption, 1), threshold, fill.id),
    )


def check_no_fill(
    vehicle: Vehicle, last_fill: Optional[FuelFill], days_threshold: float, now: datetime
) -> Optional[AlertCandidate]:
    """No fuel fill for at least ``days_threshold`` days (inclusive)."""
    if last_fill is None:
        return None
    elapsed = days_since(last_fill.filled_at, now)
    if elapsed < days_threshold:
        return None
    return AlertCandidate(
        vehicle.id,
        f"No fuel fill for {vehicle.plate} in {elapsed} day(s)",
        NoFillPayload(days_since=elapsed),
    )


def check_documents(vehicle: Vehicle, now: datetime) -> List[AlertCandidate]:
    """One candidate per document expiring within the fixed 30-day window."""
    candidates = []
    for name, expiry in vehicle.expiring_documents():
        remaining = days_until(expiry, now)
        if remaining <= DOCUMENT_EXPIRY_DAYS:
            candidates.append(
                AlertCandidate(
                    vehicle.id,
                    f'Document "{name}" for {vehicle.plate} expires in {remaining} day(s)',
                    DocumentExpiryPayload(name, remaining),
                )
            )
    return candidates


def check_reminder(
    reminder: CustomReminder, plate: str, now: datetime
) -> Optional[AlertCandidate]:
    if reminder.done:
        return None
    remaining = days_until(reminder.reminder_date, now)
    lead = reminder.alert_days_before if reminder.alert_days_before is not None else REMINDER_DAYS
    if remaining > lead:
        return None
    return AlertCandidate(
        reminder.vehicle_id,
        f'Reminder "{reminder.label}" for {plate} in {remaining} day(s)',
        ReminderPayload(reminder.id, remaining),
    )


def check_replacement(
    assignment: DriverAssignment, plate: str, now: datetime
) -> Optional[AlertCandidate]:
    """Replacement assignment whose end date is exactly tomorrow."""
    if not assignment.is_replacement or assignment.end_date is None:
        return None
    if assignment.end_date != now.date() + timedelta(days=1):
        return None
    return AlertCandidate(
        assignment.vehicle_id,
        f"Replacement on {plate} ends tomorrow ({assignment.end_date.isoformat()})",
        ReplacementPayload(assignment.id, assignment.driver_id),
        driver_id=assignment.driver_id,
    )


def check_incident(incident: Incident, plate: str) -> Optional[AlertCandidate]:
    if incident.acknowledged:
        return None
    return AlertCandidate(
        incident.vehicle_id,
        f"Unhandled incident on {plate}: {incident.summary}",
        IncidentPayload(incident.id),
    )

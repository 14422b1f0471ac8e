"""Helper functions for alert condition calculations."""

import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

from dateutil.relativedelta import relativedelta

ONE_DAY = timedelta(days=1)


def _at_midnight(day: date) -> datetime:
    return datetime.combine(day, time(), tzinfo=timezone.utc)


def days_until(target: date, now: datetime) -> int:
    """
    Whole days from ``now`` until midnight (UTC) of ``target``, floored.

    Later on the day before the target this is already 0, and it goes
    negative once the target date has started.
    """
    return math.floor((_at_midnight(target) - now) / ONE_DAY)


def days_since(instant: datetime, now: datetime) -> int:
    """Whole days elapsed since ``instant``, floored."""
    return math.floor((now - instant) / ONE_DAY)


def consumption_l100(liters: float, km_diff: float) -> Optional[float]:
    """Fuel consumption in L/100km, or None when the distance is not positive."""
    if km_diff <= 0:
        return None
    return liters / km_diff * 100


def previous_month_window(now: datetime) -> Tuple[str, date, date]:
    """
    Calendar month before ``now`` as (period, start, next_start).

    The month is read from ``now`` in its own timezone, so pass the local
    time of the schedule rather than UTC.

    The window is half-open: start is included, next_start is not.
    """
    next_start = date(now.year, now.month, 1)
    start = next_start - relativedelta(months=1)
    return start.strftime("%Y-%m"), start, next_start

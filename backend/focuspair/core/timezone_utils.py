"""
Timezone utilities for the FocusPair booking engine.

All instants are stored and compared in UTC; local time only matters when
laying out a requester's daily slot grid.
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import List

import pytz

from .constants import DEFAULT_TIMEZONE, SLOT_GRID_END, SLOT_GRID_START, SLOT_INTERVAL


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """
    Normalise a datetime to aware UTC.

    Naive values are assumed to already be UTC (SQLite drops tzinfo).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def get_timezone(tz_name: str | None) -> pytz.BaseTzInfo:
    """Resolve a timezone name, falling back to the platform default."""
    try:
        return pytz.timezone(tz_name or DEFAULT_TIMEZONE)
    except pytz.UnknownTimeZoneError:
        return pytz.timezone(DEFAULT_TIMEZONE)


def localize(day: date, at: time, tz_name: str | None) -> datetime:
    """Return the UTC instant for a wall-clock time on a day in a timezone."""
    tz = get_timezone(tz_name)
    local_dt = tz.localize(datetime.combine(day, at))
    return local_dt.astimezone(timezone.utc)


def to_local(value: datetime, tz_name: str | None) -> datetime:
    return ensure_utc(value).astimezone(get_timezone(tz_name))


def slot_grid(day: date, tz_name: str | None) -> List[datetime]:
    """
    UTC instants of every grid slot for a local day.

    The grid runs every SLOT_INTERVAL from SLOT_GRID_START to SLOT_GRID_END
    inclusive, each boundary localised independently so DST shifts stay on
    the wall-clock grid.
    """
    instants: List[datetime] = []
    cursor = datetime.combine(day, SLOT_GRID_START)
    end = datetime.combine(day, SLOT_GRID_END)
    while cursor <= end:
        instants.append(localize(day, cursor.time(), tz_name))
        cursor += SLOT_INTERVAL
    return instants


def grid_window(day: date, tz_name: str | None) -> tuple[datetime, datetime]:
    """UTC [start, end) range covered by a local day's slot grid."""
    start = localize(day, SLOT_GRID_START, tz_name)
    end = localize(day, SLOT_GRID_END, tz_name) + SLOT_INTERVAL
    return start, end


def minutes_between(later: datetime, earlier: datetime) -> float:
    return (ensure_utc(later) - ensure_utc(earlier)) / timedelta(minutes=1)

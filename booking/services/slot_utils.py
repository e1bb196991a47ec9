"""
slot_utils.py
-------------
Time-of-day arithmetic for the availability engine.

Minute-of-day convention:
- "HH:MM" becomes hours * 60 + minutes.
- Hours 00-06 count as the following day (+1440), so an evening schedule such
  as 22:00-02:00 compares as 1320-1560 instead of wrapping through zero.
- Every value compared in one scan (schedule bounds, closures, breaks, the
  candidate slot) must go through to_minutes/to_slot_minutes.
- Malformed input yields 0. No real time maps to 0 (00:00 is 1440), so callers
  can treat 0 as "could not be read".
"""

import math
from datetime import date, datetime, time, timedelta

MINUTES_PER_DAY = 24 * 60
OVERNIGHT_LAST_HOUR = 6


def _parse_hhmm(value: str) -> time:
    h, m = value.strip().split(":")[:2]
    return time(int(h), int(m))


def to_minutes(value) -> int:
    """
    Convert a time-of-day ("HH:MM", "HH:MM:SS", datetime.time or datetime)
    to overnight-extended minutes.
    """
    if isinstance(value, datetime):
        value = value.time()
    if not isinstance(value, time):
        try:
            value = _parse_hhmm(value)
        except (AttributeError, TypeError, ValueError):
            return 0

    minutes = value.hour * 60 + value.minute
    if value.hour <= OVERNIGHT_LAST_HOUR:
        minutes += MINUTES_PER_DAY
    return minutes


def to_slot_minutes(value) -> int:
    """
    Extract the time-of-day of a datetime (or an ISO-ish "YYYY-MM-DDTHH:MM" /
    "YYYY-MM-DD HH:MM" string) and normalize it with to_minutes.
    """
    if isinstance(value, datetime):
        return to_minutes(value.time())
    if not isinstance(value, str):
        return 0
    if "T" in value:
        part = value.split("T", 1)[1]
    elif " " in value.strip():
        part = value.strip().split(" ", 1)[1]
    else:
        return 0
    return to_minutes(part[:5])


def minutes_to_datetime(day: date, minutes: int) -> datetime:
    """
    Inverse of to_minutes for a given business day: values past 1440 land on
    the next calendar day.
    """
    return datetime.combine(day, time(0, 0)) + timedelta(minutes=minutes)


def weekday_index(day: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def overlaps(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    """Half-open interval overlap; touching edges do not conflict."""
    return a_start < b_end and a_end > b_start


def earliest_bookable_start(now: datetime, lead_minutes: int, granularity: int) -> datetime:
    """
    First grid boundary at or after now + lead_minutes.
    e.g. now 10:05, lead 30, grid 30 -> 11:00.
    """
    target = now + timedelta(minutes=lead_minutes)
    midnight = datetime.combine(target.date(), time(0, 0))
    elapsed = (target - midnight).total_seconds() / 60
    return midnight + timedelta(minutes=math.ceil(elapsed / granularity) * granularity)


def generate_slot_starts(open_minutes: int, close_minutes: int, duration_minutes: int, granularity: int):
    """
    Candidate start minutes on the grid between opening and closing where a
    slot of duration_minutes still fits.
    """
    assert granularity > 0, "granularity must be positive"

    starts = []
    current = open_minutes
    while current + duration_minutes <= close_minutes:
        starts.append(current)
        current += granularity
    return starts

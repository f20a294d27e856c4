"""Epoch-millisecond conversion helpers.

Stored records encode every instant as milliseconds since the Unix epoch,
interpreted in local time, the way the realtime store has always held them.
"""

import calendar
from datetime import date, datetime, time
from typing import Optional


def to_millis(value: datetime) -> int:
    """Convert a datetime to epoch milliseconds."""
    return int(round(value.timestamp() * 1000))


def from_millis(value: int) -> datetime:
    """Convert epoch milliseconds to a naive local datetime."""
    return datetime.fromtimestamp(value / 1000)


def optional_to_millis(value: Optional[datetime]) -> Optional[int]:
    return None if value is None else to_millis(value)


def optional_from_millis(value: Optional[int]) -> Optional[datetime]:
    return None if value is None else from_millis(value)


def at_noon(day: date) -> datetime:
    """Anchor a calendar date at local noon.

    Dates typed by users are stored at midday so that timezone shifts never
    move them to a neighbouring day.
    """
    return datetime.combine(day, time(12, 0))


def end_of_day(day: date) -> datetime:
    """Return the last second of a calendar date."""
    return datetime.combine(day, time(23, 59, 59))


def month_bounds(month: int, year: int) -> tuple[datetime, datetime]:
    """Return the first and last instants of a 0-based month."""
    start = datetime(year, month + 1, 1)
    last_day = calendar.monthrange(year, month + 1)[1]
    return start, end_of_day(date(year, month + 1, last_day))


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min)

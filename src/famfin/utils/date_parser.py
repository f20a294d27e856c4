"""Date parsing utilities."""

from datetime import date, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2025-01-15", "15/01/2025", "January 15, 2025", etc.
    - Relative dates: "today", "yesterday", "tomorrow", "last friday",
      "next month" (first day of that month), "in 3 days".

    Day-first is assumed for slash-separated dates, as they are written in
    Brazil.

    Args:
        date_str: Date string in various formats
        today: Reference date for relative expressions (defaults to today)

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = today or date.today()

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    if date_str.startswith("in ") and date_str.endswith((" days", " day")):
        count = date_str.split()[1]
        if count.isdigit():
            return today + timedelta(days=int(count))

    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)
        elif period in WEEKDAYS:
            days_ago = (today.weekday() - WEEKDAYS.index(period)) % 7
            if days_ago == 0:
                days_ago = 7
            return today - timedelta(days=days_ago)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)

    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) + relativedelta(years=1)
        elif period in WEEKDAYS:
            days_ahead = (WEEKDAYS.index(period) - today.weekday()) % 7
            if days_ahead == 0:
                days_ahead = 7
            return today + timedelta(days=days_ahead)

    try:
        dayfirst = "/" in date_str
        return date_parser.parse(date_str, dayfirst=dayfirst).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def parse_month(month_str: str, today: Optional[date] = None) -> tuple[int, int]:
    """Parse a billing month into a ``(month, year)`` pair.

    The returned month is 0-based (January = 0), matching stored invoices.

    Accepts "2025-03", "03/2025", "this month", "last month" and
    "next month".

    Raises:
        ValueError: If the month cannot be parsed
    """
    text = month_str.strip().lower()
    today = today or date.today()

    if text in ("this month", "last month", "next month"):
        first = parse_date(text, today=today)
        return first.month - 1, first.year

    for separator, year_first in (("-", True), ("/", False)):
        parts = text.split(separator)
        if len(parts) == 2 and all(part.isdigit() for part in parts):
            year, month = (parts[0], parts[1]) if year_first else (parts[1], parts[0])
            month_number = int(month)
            if not 1 <= month_number <= 12:
                raise ValueError(f"Invalid month in '{month_str}'")
            return month_number - 1, int(year)

    raise ValueError(f"Could not parse month '{month_str}'. Use YYYY-MM or MM/YYYY")

"""Credit card billing cycle calculations.

Pure functions mapping a purchase date and a card's closing/due days onto an
invoice period. Invoice months are represented as the first day of the month.

Day values are clamped to the length of the month they fall in, so a card
closing on day 31 closes on the last day of shorter months.
"""

import calendar
from datetime import date, datetime
from typing import Union

from dateutil.relativedelta import relativedelta

from famfin.domain.errors import ValidationError
from famfin.utils.timestamps import end_of_day

DateLike = Union[date, datetime]


def validate_day(day: int, label: str = "day") -> int:
    """Check that a day-of-month setting is within 1..31.

    Raises:
        ValidationError: If the day is out of range
    """
    if not isinstance(day, int) or isinstance(day, bool) or not 1 <= day <= 31:
        raise ValidationError(f"Invalid {label} {day!r}: must be between 1 and 31")
    return day


def clamp_day(year: int, month: int, day: int) -> date:
    """Return ``day`` within the month, clamped to the month's last day.

    ``month`` is 1-based here, as in ``datetime.date``.
    """
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day, last_day))


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def invoice_month_for(purchase_date: DateLike, closing_day: int) -> date:
    """Return the invoice month a purchase is billed in.

    Purchases made after the closing day roll into the next month's invoice;
    purchases on or before it belong to the current month's invoice.
    """
    validate_day(closing_day, "closing day")
    purchase = _as_date(purchase_date)
    closing = clamp_day(purchase.year, purchase.month, closing_day)
    first_of_month = purchase.replace(day=1)
    if purchase.day > closing.day:
        return first_of_month + relativedelta(months=1)
    return first_of_month


def closing_date_for(invoice_month: DateLike, closing_day: int) -> datetime:
    """Return the closing instant (end of the closing day) of an invoice month."""
    validate_day(closing_day, "closing day")
    month = _as_date(invoice_month)
    return end_of_day(clamp_day(month.year, month.month, closing_day))


def due_date_for(invoice_month: DateLike, due_day: int, closing_day: int) -> datetime:
    """Return the due instant of an invoice month.

    When the due day is numerically before the closing day, the invoice falls
    due in the month after it closes.
    """
    validate_day(due_day, "due day")
    validate_day(closing_day, "closing day")
    month = _as_date(invoice_month).replace(day=1)
    if due_day < closing_day:
        month = month + relativedelta(months=1)
    return end_of_day(clamp_day(month.year, month.month, due_day))


def next_due_date(closing_day: int, due_day: int, today: DateLike) -> datetime:
    """Return when the invoice currently accumulating purchases falls due."""
    invoice_month = invoice_month_for(today, closing_day)
    return due_date_for(invoice_month, due_day, closing_day)


def shift_months(value: datetime, months: int) -> datetime:
    """Move an instant by whole calendar months, clamping the day."""
    return value + relativedelta(months=months)

"""Tests for credit card billing cycle calculations."""

from datetime import date, datetime

import pytest

from famfin.domain.billing_cycle import (
    clamp_day,
    closing_date_for,
    due_date_for,
    invoice_month_for,
    next_due_date,
    shift_months,
    validate_day,
)
from famfin.domain.errors import ValidationError


def test_purchase_after_closing_goes_to_next_month():
    assert invoice_month_for(datetime(2024, 3, 15, 12, 0), 10) == date(2024, 4, 1)


def test_purchase_on_closing_day_stays_in_month():
    assert invoice_month_for(date(2024, 3, 10), 10) == date(2024, 3, 1)


def test_purchase_before_closing_stays_in_month():
    assert invoice_month_for(date(2024, 3, 2), 10) == date(2024, 3, 1)


def test_december_purchase_rolls_into_next_year():
    assert invoice_month_for(date(2024, 12, 20), 10) == date(2025, 1, 1)


def test_due_day_before_closing_day_falls_in_following_month():
    # Closing on the 10th, due on the 5th: the April invoice is due May 5th
    assert due_date_for(date(2024, 4, 1), 5, 10) == datetime(2024, 5, 5, 23, 59, 59)


def test_due_day_after_closing_day_stays_in_invoice_month():
    assert due_date_for(date(2024, 4, 1), 17, 10) == datetime(2024, 4, 17, 23, 59, 59)


def test_closing_date_is_end_of_closing_day():
    assert closing_date_for(date(2024, 4, 1), 10) == datetime(2024, 4, 10, 23, 59, 59)


def test_closing_day_clamped_in_short_month():
    assert closing_date_for(date(2024, 2, 1), 31) == datetime(2024, 2, 29, 23, 59, 59)
    assert closing_date_for(date(2023, 2, 1), 30) == datetime(2023, 2, 28, 23, 59, 59)


def test_last_day_purchase_with_clamped_closing_day_stays_in_month():
    assert invoice_month_for(date(2024, 2, 29), 31) == date(2024, 2, 1)


def test_due_day_clamped_in_short_month():
    assert due_date_for(date(2024, 1, 1), 30, 31) == datetime(2024, 2, 29, 23, 59, 59)


def test_clamp_day():
    assert clamp_day(2024, 4, 31) == date(2024, 4, 30)
    assert clamp_day(2024, 4, 15) == date(2024, 4, 15)


@pytest.mark.parametrize("day", [0, 32, -1])
def test_invalid_day_rejected(day):
    with pytest.raises(ValidationError):
        validate_day(day, "closing day")


def test_invalid_closing_day_rejected_by_calculations():
    with pytest.raises(ValidationError):
        invoice_month_for(date(2024, 3, 1), 0)


def test_next_due_date():
    assert next_due_date(10, 5, date(2024, 3, 20)) == datetime(2024, 5, 5, 23, 59, 59)
    assert next_due_date(10, 5, date(2024, 3, 8)) == datetime(2024, 4, 5, 23, 59, 59)


def test_shift_months_clamps_day():
    assert shift_months(datetime(2024, 1, 31, 12, 0), 1) == datetime(2024, 2, 29, 12, 0)
    assert shift_months(datetime(2024, 11, 15, 12, 0), 3) == datetime(2025, 2, 15, 12, 0)

"""Unit tests for fee status derivation and billing schedule (pure logic, no DB)."""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from app.core.exceptions import ValidationError
from app.models.enums import FeeStatus
from app.services.fee_status import (
    compute_schedule,
    derive_status,
    due_date_for,
    next_payment_date_for,
    total_paid,
)

DUE = date(2024, 2, 25)
BEFORE_DUE = date(2024, 2, 20)
AFTER_DUE = date(2024, 3, 1)


def _payments(*amounts):
    return [SimpleNamespace(amount=Decimal(str(a))) for a in amounts]


@pytest.mark.parametrize(
    "amounts, today, expected",
    [
        ((), BEFORE_DUE, FeeStatus.UNPAID),
        ((400,), BEFORE_DUE, FeeStatus.PARTIAL),
        ((600, 400), BEFORE_DUE, FeeStatus.PAID),
        ((1200,), BEFORE_DUE, FeeStatus.PAID),
        ((), AFTER_DUE, FeeStatus.OVERDUE),
        ((400,), AFTER_DUE, FeeStatus.OVERDUE),
        ((1000,), AFTER_DUE, FeeStatus.PAID),
    ],
)
def test_derive_status(amounts, today, expected):
    assert derive_status(_payments(*amounts), Decimal("1000"), DUE, today) == expected


def test_derive_status_on_due_date_is_not_overdue():
    assert derive_status([], Decimal("1000"), DUE, DUE) == FeeStatus.UNPAID


def test_zero_fee_is_always_paid():
    assert derive_status([], Decimal("0"), DUE, BEFORE_DUE) == FeeStatus.PAID
    assert derive_status([], Decimal("0"), DUE, AFTER_DUE) == FeeStatus.PAID


def test_derive_status_accepts_floats_and_strings():
    payments = [SimpleNamespace(amount=250.5), SimpleNamespace(amount="249.5")]
    assert total_paid(payments) == Decimal("500.0")
    assert derive_status(payments, "500", DUE, BEFORE_DUE) == FeeStatus.PAID


def test_total_paid_empty():
    assert total_paid([]) == Decimal("0")


def test_schedule_one_month_plus_grace():
    next_payment, due = compute_schedule(date(2024, 1, 10))
    assert next_payment == date(2024, 2, 10)
    assert due == date(2024, 2, 25)


def test_schedule_clamps_to_month_end():
    next_payment, due = compute_schedule(date(2024, 1, 31))
    assert next_payment == date(2024, 2, 29)
    assert due == date(2024, 3, 15)

    assert next_payment_date_for(date(2023, 1, 31)) == date(2023, 2, 28)


def test_schedule_crosses_year_boundary():
    assert next_payment_date_for(date(2024, 12, 15)) == date(2025, 1, 15)


def test_schedule_overrides():
    assert next_payment_date_for(date(2024, 1, 10), interval_months=3) == date(2024, 4, 10)
    assert due_date_for(date(2024, 4, 10), grace_days=0) == date(2024, 4, 10)


def test_schedule_out_of_range_is_validation_error():
    with pytest.raises(ValidationError):
        compute_schedule(date(9999, 12, 31))
    with pytest.raises(ValidationError):
        due_date_for(date(9999, 12, 25))

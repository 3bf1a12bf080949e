"""Fee status derivation and billing schedule rules (pure functions, no I/O)"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Iterable, Optional, Tuple

from app.config import settings
from app.core.exceptions import ValidationError
from app.models.enums import FeeStatus
from app.utils.time import add_months


def _to_decimal(val: Any) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def total_paid(payments: Iterable[Any]) -> Decimal:
    """Sum of payment amounts. Accepts ORM payments or PaymentCreate schemas."""
    return sum((_to_decimal(p.amount) for p in payments), Decimal("0"))


def derive_status(payments: Iterable[Any], fee_amount: Any, due_date: date, today: date) -> FeeStatus:
    """
    Status of a fee record from its payment ledger.

    paid when the ledger covers the fee, partial when something has been
    paid, unpaid otherwise; anything short of paid becomes overdue once
    today is past the due date. A zero fee is always paid.
    """
    paid = total_paid(payments)

    if paid >= _to_decimal(fee_amount):
        status = FeeStatus.PAID
    elif paid > 0:
        status = FeeStatus.PARTIAL
    else:
        status = FeeStatus.UNPAID

    if today > due_date and status != FeeStatus.PAID:
        status = FeeStatus.OVERDUE

    return status


def next_payment_date_for(admission_date: date, interval_months: Optional[int] = None) -> date:
    months = settings.FEE_BILLING_INTERVAL_MONTHS if interval_months is None else interval_months
    try:
        return add_months(admission_date, months)
    except (ValueError, OverflowError) as exc:
        raise ValidationError(f"Admission date {admission_date.isoformat()} is out of the schedulable range") from exc


def due_date_for(next_payment_date: date, grace_days: Optional[int] = None) -> date:
    days = settings.FEE_GRACE_DAYS if grace_days is None else grace_days
    try:
        return next_payment_date + timedelta(days=days)
    except OverflowError as exc:
        raise ValidationError(f"Next payment date {next_payment_date.isoformat()} is out of the schedulable range") from exc


def compute_schedule(admission_date: date) -> Tuple[date, date]:
    """(next_payment_date, due_date) for a record whose billing starts at admission_date."""
    next_payment = next_payment_date_for(admission_date)
    return next_payment, due_date_for(next_payment)

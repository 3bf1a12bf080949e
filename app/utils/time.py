"""Time Utilities for UTC management"""

from datetime import date, datetime, timezone

from dateutil.relativedelta import relativedelta


def get_utc_now() -> datetime:
    """
    Returns a naive UTC datetime.
    Matches the DB schema (TIMESTAMP WITHOUT TIME ZONE).
    Avoids 'datetime.utcnow()' deprecation warnings.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utc_today() -> date:
    """Current calendar date in UTC; the reference 'today' for due-date checks."""
    return get_utc_now().date()


def add_months(value: date, months: int) -> date:
    """Add calendar months, clamping to the last day of shorter months (Jan 31 + 1 -> Feb 28/29)."""
    return value + relativedelta(months=months)

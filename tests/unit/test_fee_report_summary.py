"""Unit tests for report aggregation helpers (no DB)."""

from decimal import Decimal
from types import SimpleNamespace

from app.models.enums import FeeStatus
from app.services.fee_report_service import collection_percentage, summarize_records


def _record(fee_amount, paid, status):
    return SimpleNamespace(fee_amount=Decimal(str(fee_amount)), total_paid=Decimal(str(paid)), status=status)


def test_collection_percentage():
    assert collection_percentage(Decimal("2000"), Decimal("400")) == 20.0
    assert collection_percentage(Decimal("3"), Decimal("1")) == 33.33


def test_collection_percentage_nothing_due():
    assert collection_percentage(Decimal("0"), Decimal("0")) == 0.0


def test_summarize_records():
    summary = summarize_records(
        [
            _record(1000, 400, FeeStatus.PARTIAL),
            _record(1000, 0, FeeStatus.OVERDUE),
        ]
    )
    assert summary["total_records"] == 2
    assert summary["total_due"] == Decimal("2000")
    assert summary["total_collected"] == Decimal("400")
    assert summary["pending_amount"] == Decimal("1600")
    assert summary["collection_percentage"] == 20.0
    assert summary["status_counts"] == {"unpaid": 0, "partial": 1, "paid": 0, "overdue": 1}


def test_summarize_no_records():
    summary = summarize_records([])
    assert summary["total_records"] == 0
    assert summary["collection_percentage"] == 0.0
    assert sum(summary["status_counts"].values()) == 0

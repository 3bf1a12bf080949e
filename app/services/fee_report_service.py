"""Fee collection reports. Read-only, recomputed on every call."""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.enums import FeeStatus
from app.models.fee import FeePayment, FeeRecord
from app.schemas.fee import ClassFeeReport, FeeRecordResponse, FeeStatusSummary, StatusBucket
from app.services.fee_service import FeeLedgerService
from app.services.student_directory import StudentDirectory


def collection_percentage(total_due: Decimal, total_collected: Decimal) -> float:
    """Collected share of the amount due, in percent. 0 when nothing is due."""
    if total_due <= 0:
        return 0.0
    return round(float(total_collected / total_due * 100), 2)


def summarize_records(records: Iterable[FeeRecord]) -> Dict[str, Any]:
    """Totals and a per-status count that partitions the records exactly once."""
    total_due = Decimal("0")
    total_collected = Decimal("0")
    status_counts = {status.value: 0 for status in FeeStatus}
    count = 0

    for record in records:
        count += 1
        total_due += Decimal(str(record.fee_amount))
        total_collected += record.total_paid
        status_counts[FeeStatus(record.status).value] += 1

    return {
        "total_records": count,
        "total_due": total_due,
        "total_collected": total_collected,
        "pending_amount": total_due - total_collected,
        "collection_percentage": collection_percentage(total_due, total_collected),
        "status_counts": status_counts,
    }


class FeeReportService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.students = StudentDirectory(db)
        self.ledger = FeeLedgerService(db, students=self.students)

    async def class_fee_report(
        self, class_id: UUID, academic_year: str, today: Optional[date] = None
    ) -> ClassFeeReport:
        student_ids = await self.students.list_ids_in_class(class_id)
        records = await self.ledger.find_for_students(student_ids, academic_year, today=today)
        summary = summarize_records(records)

        return ClassFeeReport(
            class_id=class_id,
            academic_year=academic_year,
            total_students=len(student_ids),
            fee_records=[FeeRecordResponse.model_validate(r) for r in records],
            **summary,
        )

    async def status_summary(
        self, academic_year: Optional[str] = None, today: Optional[date] = None
    ) -> FeeStatusSummary:
        """School-wide count, amount due and amount collected per status."""
        await self.ledger.refresh_overdue(today)

        due_query = select(
            FeeRecord.status,
            func.count(FeeRecord.id),
            func.coalesce(func.sum(FeeRecord.fee_amount), 0),
        ).group_by(FeeRecord.status)
        collected_query = (
            select(FeeRecord.status, func.coalesce(func.sum(FeePayment.amount), 0))
            .join(FeePayment, FeePayment.fee_record_id == FeeRecord.id)
            .group_by(FeeRecord.status)
        )
        if academic_year:
            due_query = due_query.where(FeeRecord.academic_year == academic_year)
            collected_query = collected_query.where(FeeRecord.academic_year == academic_year)

        buckets = {
            status.value: {"count": 0, "total_due": Decimal("0"), "total_collected": Decimal("0")}
            for status in FeeStatus
        }
        for status, count, due in (await self.db.execute(due_query)).all():
            bucket = buckets[FeeStatus(status).value]
            bucket["count"] = count
            bucket["total_due"] = Decimal(str(due))
        for status, collected in (await self.db.execute(collected_query)).all():
            buckets[FeeStatus(status).value]["total_collected"] = Decimal(str(collected))

        total_due = sum((b["total_due"] for b in buckets.values()), Decimal("0"))
        total_collected = sum((b["total_collected"] for b in buckets.values()), Decimal("0"))

        return FeeStatusSummary(
            academic_year=academic_year,
            total_records=sum(b["count"] for b in buckets.values()),
            total_due=total_due,
            total_collected=total_collected,
            pending_amount=total_due - total_collected,
            collection_percentage=collection_percentage(total_due, total_collected),
            by_status={key: StatusBucket(**value) for key, value in buckets.items()},
        )

"""Fee ledger service: fee record lifecycle, ledger appends and listings"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.enums import FeeStatus, FeeTerm
from app.models.fee import FeeNote, FeePayment, FeeRecord
from app.schemas.fee import FeeRecordUpdate, NoteCreate, PaymentCreate
from app.services.fee_status import derive_status, due_date_for, next_payment_date_for
from app.services.student_directory import StudentDirectory
from app.utils.time import get_utc_now, utc_today

logger = logging.getLogger(__name__)

# Statuses the passage of time can turn into overdue
_OVERDUE_CANDIDATES = (FeeStatus.UNPAID, FeeStatus.PARTIAL)


class FeeLedgerService:
    """Owns FeeRecord persistence. status is kept as a cache of derive_status."""

    def __init__(self, db: AsyncSession, students: Optional[StudentDirectory] = None):
        self.db = db
        self.students = students or StudentDirectory(db)

    # --- Lookup ---

    async def get_record(self, record_id: UUID) -> FeeRecord:
        """Fee record with student, payments and notes loaded, or NotFoundError."""
        result = await self.db.execute(
            select(FeeRecord)
            .where(FeeRecord.id == record_id)
            .execution_options(populate_existing=True)
        )
        record = result.scalar_one_or_none()
        if record is None:
            raise NotFoundError("Fee record not found")
        return record

    async def get_fresh_record(self, record_id: UUID, today: Optional[date] = None) -> FeeRecord:
        """get_record with the cached status re-derived and persisted if stale."""
        record = await self.get_record(record_id)
        if record.status_override:
            return record

        derived = derive_status(record.payments, record.fee_amount, record.due_date, today or utc_today())
        if derived != record.status:
            logger.info(
                "Fee status refreshed",
                extra={"fee_record_id": str(record.id), "previous_status": record.status.value, "status": derived.value},
            )
            record.status = derived
            await self._commit()
            record = await self.get_record(record_id)
        return record

    async def serial_number_exists(self, serial_number: str) -> bool:
        result = await self.db.execute(
            select(FeeRecord.id).where(FeeRecord.serial_number == serial_number)
        )
        return result.first() is not None

    # --- Creation ---

    async def create_record(
        self,
        *,
        student_id: UUID,
        serial_number: str,
        fee_amount: Decimal,
        academic_year: str,
        term: FeeTerm,
        admission_date: Optional[date] = None,
        next_payment_date: Optional[date] = None,
        due_date: Optional[date] = None,
        status: Optional[FeeStatus] = None,
        payments: Sequence[PaymentCreate] = (),
        notes: Sequence[NoteCreate] = (),
        today: Optional[date] = None,
    ) -> FeeRecord:
        """
        Persist a new fee record for an existing student.

        The schedule is computed once here: next payment one billing interval
        after admission, due date a grace period later. The status is derived
        from the initial payments (none outside bulk import), so a new record
        is unpaid unless its fee is zero or already past due. An explicit
        status is stored as an administrative override.
        """
        if not serial_number:
            raise ValidationError("Serial number is required")
        if fee_amount is None or Decimal(str(fee_amount)) < 0:
            raise ValidationError("Fee amount must be a non-negative number")
        if not academic_year:
            raise ValidationError("Academic year is required")

        student = await self.students.get(student_id)

        if await self.serial_number_exists(serial_number):
            raise ConflictError(f"Fee record with serial number {serial_number} already exists")

        admission = admission_date or student.admission_date or utc_today()
        next_payment = next_payment_date or next_payment_date_for(admission)
        due = due_date or due_date_for(next_payment)

        record = FeeRecord(
            student_id=student.id,
            serial_number=serial_number,
            fee_amount=Decimal(str(fee_amount)),
            status=FeeStatus.UNPAID,
            status_override=False,
            admission_date=admission,
            next_payment_date=next_payment,
            due_date=due,
            academic_year=academic_year,
            term=FeeTerm(term),
        )
        for position, payment in enumerate(payments):
            record.payments.append(self._payment_entry(position, payment))
        for position, note in enumerate(notes):
            record.notes.append(self._note_entry(position, note))

        if status is not None:
            record.status = FeeStatus(status)
            record.status_override = True
        else:
            record.status = derive_status(record.payments, record.fee_amount, due, today or utc_today())

        self.db.add(record)
        await self._commit(conflict_message=f"Fee record with serial number {serial_number} already exists")
        record_id = record.id

        logger.info(
            "Fee record created",
            extra={
                "fee_record_id": str(record_id),
                "student_id": str(student.id),
                "serial_number": serial_number,
                "status": record.status.value,
            },
        )
        return await self.get_record(record_id)

    # --- Ledger appends ---

    async def append_payment(
        self, record_id: UUID, payment: PaymentCreate, today: Optional[date] = None
    ) -> FeeRecord:
        """Append a payment, re-derive and persist the status, clear any override."""
        record = await self.get_record(record_id)
        previous = record.status

        record.payments.append(self._payment_entry(len(record.payments), payment))
        record.status = derive_status(record.payments, record.fee_amount, record.due_date, today or utc_today())
        record.status_override = False

        await self._commit(conflict_message="Concurrent ledger update, retry the payment")
        logger.info(
            "Payment appended",
            extra={
                "fee_record_id": str(record_id),
                "amount": str(payment.amount),
                "method": payment.method,
                "previous_status": previous.value,
                "status": record.status.value,
            },
        )
        return await self.get_record(record_id)

    async def append_note(self, record_id: UUID, note: NoteCreate) -> FeeRecord:
        """Append an audit note. Status is untouched."""
        record = await self.get_record(record_id)
        record.notes.append(self._note_entry(len(record.notes), note))

        await self._commit(conflict_message="Concurrent ledger update, retry the note")
        logger.info("Note appended", extra={"fee_record_id": str(record_id)})
        return await self.get_record(record_id)

    # --- Administrative changes ---

    async def update_record(
        self, record_id: UUID, changes: FeeRecordUpdate, today: Optional[date] = None
    ) -> FeeRecord:
        """
        Replace administrative fields. An explicit status is stored verbatim
        and flagged as an override; otherwise the status cache is re-derived
        unless an earlier override is still in force.
        """
        record = await self.get_record(record_id)
        fields = changes.model_dump(exclude_unset=True, exclude_none=True)
        status = fields.pop("status", None)

        for field, value in fields.items():
            setattr(record, field, value)

        if status is not None:
            record.status = FeeStatus(status)
            record.status_override = True
            logger.warning(
                "Fee status overridden",
                extra={"fee_record_id": str(record_id), "status": record.status.value},
            )
        elif not record.status_override:
            record.status = derive_status(record.payments, record.fee_amount, record.due_date, today or utc_today())

        await self._commit()
        logger.info("Fee record updated", extra={"fee_record_id": str(record_id), "fields": sorted(fields)})
        return await self.get_record(record_id)

    async def delete_record(self, record_id: UUID) -> None:
        """Delete a record and its ledger. No checks against payment history."""
        record = await self.get_record(record_id)
        await self.db.delete(record)
        await self._commit()
        logger.info(
            "Fee record deleted",
            extra={"fee_record_id": str(record_id), "serial_number": record.serial_number},
        )

    # --- Listings ---

    async def refresh_overdue(self, today: Optional[date] = None) -> int:
        """
        Bring cached statuses up to date with the calendar: unpaid and partial
        records past their due date become overdue. Overrides and zero fees
        (always paid) are left alone.
        """
        today = today or utc_today()
        result = await self.db.execute(
            update(FeeRecord)
            .where(
                FeeRecord.status_override.is_(False),
                FeeRecord.status.in_(_OVERDUE_CANDIDATES),
                FeeRecord.fee_amount > 0,
                FeeRecord.due_date < today,
            )
            .values(status=FeeStatus.OVERDUE, updated_at=get_utc_now())
            .execution_options(synchronize_session=False)
        )
        await self._commit()
        count = result.rowcount or 0
        if count:
            logger.info("Fee records marked overdue", extra={"count": count, "as_of": today.isoformat()})
        return count

    async def list_records(
        self,
        status: Optional[FeeStatus] = None,
        page: int = 1,
        page_size: int = 20,
        today: Optional[date] = None,
    ) -> Tuple[List[FeeRecord], int]:
        """
        One page of records, oldest first, and the total matching count.
        Offset pagination: inserts between requests can shift pages.
        """
        if page < 1 or page_size < 1:
            raise ValidationError("Invalid pagination parameters")

        await self.refresh_overdue(today)

        query = select(FeeRecord)
        count_query = select(func.count()).select_from(FeeRecord)
        if status is not None:
            query = query.where(FeeRecord.status == FeeStatus(status))
            count_query = count_query.where(FeeRecord.status == FeeStatus(status))

        total = (await self.db.execute(count_query)).scalar_one()
        result = await self.db.execute(
            query.order_by(FeeRecord.created_at, FeeRecord.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all()), total

    async def find_by_status(
        self, status: FeeStatus, page: int = 1, page_size: int = 20, today: Optional[date] = None
    ) -> Tuple[List[FeeRecord], int]:
        return await self.list_records(status=status, page=page, page_size=page_size, today=today)

    async def find_by_student(self, student_id: UUID, today: Optional[date] = None) -> List[FeeRecord]:
        await self.refresh_overdue(today)
        result = await self.db.execute(
            select(FeeRecord)
            .where(FeeRecord.student_id == student_id)
            .order_by(FeeRecord.created_at, FeeRecord.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def find_for_students(
        self, student_ids: Iterable[UUID], academic_year: str, today: Optional[date] = None
    ) -> List[FeeRecord]:
        """Read-only scan used by reports; statuses are refreshed first."""
        student_ids = list(student_ids)
        if not student_ids:
            return []
        await self.refresh_overdue(today)
        result = await self.db.execute(
            select(FeeRecord)
            .where(FeeRecord.student_id.in_(student_ids), FeeRecord.academic_year == academic_year)
            .order_by(FeeRecord.created_at, FeeRecord.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    # --- Helpers ---

    @staticmethod
    def _payment_entry(position: int, payment: PaymentCreate) -> FeePayment:
        return FeePayment(
            position=position,
            date=payment.date,
            amount=Decimal(str(payment.amount)),
            method=payment.method,
            reference=payment.reference,
        )

    @staticmethod
    def _note_entry(position: int, note: NoteCreate) -> FeeNote:
        return FeeNote(position=position, date=note.date, text=note.text)

    async def _commit(self, conflict_message: str = "Fee record conflicts with an existing record") -> None:
        """Commit, translating store uniqueness violations into ConflictError."""
        try:
            await self.db.commit()
        except IntegrityError as exc:
            await self.db.rollback()
            raise ConflictError(conflict_message) from exc

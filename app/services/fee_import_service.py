"""Bulk fee import: reconcile external fee rows against students and the ledger"""

import logging
from datetime import date
from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import AppError, ConflictError, ValidationError
from app.models.fee import FeeRecord
from app.schemas.fee import ExternalFeeRow, FeeImportResult, FeeRecordResponse, ImportRowError
from app.services.fee_service import FeeLedgerService
from app.services.student_directory import StudentDirectory
from app.utils.time import get_utc_now, utc_today

logger = logging.getLogger(__name__)


def generate_serial_number(batch_stamp: int, index: int) -> str:
    """Serial for rows without one: batch timestamp (ms) plus row index."""
    return f"SN{batch_stamp}-{index}"


class FeeImportService:
    """
    Processes a batch row by row, in input order. Each row is its own unit of
    work: a failing row is rolled back and recorded, never aborting the batch.
    Rows are not processed concurrently, so repeated unknown admission numbers
    in one batch resolve to a single student.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.students = StudentDirectory(db)
        self.ledger = FeeLedgerService(db, students=self.students)

    async def import_batch(self, rows: Any, today: Optional[date] = None) -> FeeImportResult:
        if not isinstance(rows, list):
            raise ValidationError("Invalid data format, expected an array")

        today = today or utc_today()
        batch_stamp = int(get_utc_now().timestamp() * 1000)
        imported: List[FeeRecordResponse] = []
        errors: List[ImportRowError] = []

        for index, raw in enumerate(rows):
            try:
                record = await self._import_row(index, raw, batch_stamp, today)
            except (AppError, PydanticValidationError, IntegrityError, DataError) as exc:
                await self.db.rollback()
                error = self._row_error(index, raw, exc)
                errors.append(error)
                logger.warning(
                    "Fee import row failed",
                    extra={"row_index": index, "code": error.code, "error": error.error},
                )
                continue
            imported.append(FeeRecordResponse.model_validate(record))

        logger.info(
            "Fee import finished",
            extra={"rows": len(rows), "success_count": len(imported), "error_count": len(errors)},
        )
        return FeeImportResult(
            success_count=len(imported),
            error_count=len(errors),
            errors=errors,
            imported_records=imported[: settings.IMPORT_PREVIEW_PAGE_SIZE],
        )

    async def _import_row(self, index: int, raw: Any, batch_stamp: int, today: date) -> FeeRecord:
        row = ExternalFeeRow.model_validate(raw)
        student = await self.students.resolve_or_create(row.admission_number, row.student_defaults())

        return await self.ledger.create_record(
            student_id=student.id,
            serial_number=row.serial_number or generate_serial_number(batch_stamp, index),
            fee_amount=row.fee_amount,
            academic_year=row.academic_year or str(today.year),
            term=row.term,
            admission_date=row.admission_date,
            next_payment_date=row.next_payment_date,
            due_date=row.due_date,
            status=row.status,
            payments=row.payments,
            notes=row.notes,
            today=today,
        )

    @staticmethod
    def _row_error(index: int, raw: Any, exc: Exception) -> ImportRowError:
        if isinstance(exc, PydanticValidationError):
            exc = ValidationError.from_pydantic(exc)
        elif isinstance(exc, IntegrityError):
            exc = ConflictError("Row conflicts with an existing record")
        elif isinstance(exc, DataError):
            exc = ValidationError("Row contains values the store cannot accept")

        admission_number = serial_number = None
        if isinstance(raw, dict):
            admission_number = raw.get("admissionNumber") or raw.get("admission_number")
            serial_number = raw.get("serialNumber") or raw.get("serial_number")

        return ImportRowError(
            index=index,
            admission_number=str(admission_number) if admission_number is not None else None,
            serial_number=str(serial_number) if serial_number is not None else None,
            code=exc.code,
            error=exc.message,
        )

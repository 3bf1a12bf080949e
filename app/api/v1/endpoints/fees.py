from typing import Annotated, Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Request, status

from app.api import deps
from app.config import settings
from app.core.rate_limit import IMPORT_RATE_LIMIT, limiter
from app.models.enums import FeeStatus
from app.schemas.fee import (
    ClassFeeReport,
    FeeImportResponse,
    FeeRecordCreate,
    FeeRecordResponse,
    FeeRecordUpdate,
    FeeStatusSummary,
    NoteCreate,
    PaymentCreate,
)
from app.schemas.responses import PaginatedResponse, PaginationMeta, SuccessResponse
from app.services.fee_import_service import FeeImportService
from app.services.fee_report_service import FeeReportService
from app.services.fee_service import FeeLedgerService

router = APIRouter()

PageParam = Annotated[int, Query(ge=1, description="Page number (1-based)")]
LimitParam = Annotated[int, Query(ge=1, le=settings.FEE_MAX_PAGE_SIZE, description="Items per page")]


def _page(records, total: int, page: int, limit: int, message: str) -> PaginatedResponse[FeeRecordResponse]:
    return PaginatedResponse(
        data=[FeeRecordResponse.model_validate(r) for r in records],
        pagination=PaginationMeta.build(total, page, limit),
        message=message,
    )


@router.get("", response_model=PaginatedResponse[FeeRecordResponse])
async def list_fee_records(
    page: PageParam = 1,
    limit: LimitParam = settings.FEE_DEFAULT_PAGE_SIZE,
    status_filter: Optional[FeeStatus] = Query(None, alias="status"),
    current_user: deps.CurrentUser = Depends(deps.get_current_user),
    ledger: FeeLedgerService = Depends(deps.get_fee_ledger),
) -> Any:
    """
    List fee records, oldest first, optionally filtered by status.
    """
    records, total = await ledger.list_records(status=status_filter, page=page, page_size=limit)
    return _page(records, total, page, limit, "Fee records successfully fetched")


@router.get("/filter/{fee_status}", response_model=PaginatedResponse[FeeRecordResponse])
async def list_fee_records_by_status(
    fee_status: FeeStatus,
    page: PageParam = 1,
    limit: LimitParam = settings.FEE_DEFAULT_PAGE_SIZE,
    current_user: deps.CurrentUser = Depends(deps.get_current_user),
    ledger: FeeLedgerService = Depends(deps.get_fee_ledger),
) -> Any:
    records, total = await ledger.find_by_status(fee_status, page=page, page_size=limit)
    return _page(records, total, page, limit, "Fee records successfully fetched")


@router.get("/student/{student_id}", response_model=SuccessResponse[list[FeeRecordResponse]])
async def list_student_fee_records(
    student_id: UUID,
    current_user: deps.CurrentUser = Depends(deps.get_current_user),
    ledger: FeeLedgerService = Depends(deps.get_fee_ledger),
) -> Any:
    records = await ledger.find_by_student(student_id)
    return SuccessResponse(
        data=[FeeRecordResponse.model_validate(r) for r in records],
        message="Fee records successfully fetched",
    )


@router.get("/report/class/{class_id}/{academic_year}", response_model=SuccessResponse[ClassFeeReport])
async def class_fee_report(
    class_id: UUID,
    academic_year: str,
    current_user: deps.CurrentUser = Depends(deps.get_current_user),
    reporter: FeeReportService = Depends(deps.get_fee_reporter),
) -> Any:
    """
    Class-wide collection report for one academic year.
    """
    report = await reporter.class_fee_report(class_id, academic_year)
    return SuccessResponse(data=report, message="Fee report fetched successfully")


@router.get("/report/status", response_model=SuccessResponse[FeeStatusSummary])
async def fee_status_summary(
    academic_year: Optional[str] = Query(None, alias="academicYear"),
    current_user: deps.CurrentUser = Depends(deps.get_current_user),
    reporter: FeeReportService = Depends(deps.get_fee_reporter),
) -> Any:
    summary = await reporter.status_summary(academic_year=academic_year)
    return SuccessResponse(data=summary, message="Fee status summary fetched successfully")


@router.post("/import", response_model=FeeImportResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(IMPORT_RATE_LIMIT)
async def import_fee_records(
    request: Request,
    rows: Any = Body(...),
    current_user: deps.CurrentUser = Depends(deps.require_admin),
    importer: FeeImportService = Depends(deps.get_fee_importer),
) -> Any:
    """
    Bulk import fee records from an external export (JSON array of rows).
    Unknown admission numbers get placeholder students. Failed rows are
    reported in errors; the rest of the batch is still imported.
    """
    result = await importer.import_batch(rows)
    return FeeImportResponse(
        data=result,
        pagination=PaginationMeta.build(result.success_count, 1, settings.IMPORT_PREVIEW_PAGE_SIZE),
        message=f"{result.success_count} fee records imported successfully, {result.error_count} failed",
    )


@router.post("", response_model=SuccessResponse[FeeRecordResponse], status_code=status.HTTP_201_CREATED)
async def create_fee_record(
    fee_in: FeeRecordCreate,
    current_user: deps.CurrentUser = Depends(deps.get_current_user),
    ledger: FeeLedgerService = Depends(deps.get_fee_ledger),
) -> Any:
    record = await ledger.create_record(
        student_id=fee_in.student_id,
        serial_number=fee_in.serial_number,
        fee_amount=fee_in.fee_amount,
        academic_year=fee_in.academic_year,
        term=fee_in.term,
        admission_date=fee_in.admission_date,
    )
    return SuccessResponse(data=FeeRecordResponse.model_validate(record), message="Fee record created successfully")


@router.get("/{fee_id}", response_model=SuccessResponse[FeeRecordResponse])
async def get_fee_record(
    fee_id: UUID,
    current_user: deps.CurrentUser = Depends(deps.get_current_user),
    ledger: FeeLedgerService = Depends(deps.get_fee_ledger),
) -> Any:
    record = await ledger.get_fresh_record(fee_id)
    return SuccessResponse(data=FeeRecordResponse.model_validate(record), message="Fee record successfully fetched")


@router.put("/{fee_id}", response_model=SuccessResponse[FeeRecordResponse])
async def update_fee_record(
    fee_id: UUID,
    fee_in: FeeRecordUpdate,
    current_user: deps.CurrentUser = Depends(deps.require_admin),
    ledger: FeeLedgerService = Depends(deps.get_fee_ledger),
) -> Any:
    """
    Administrative update. Payments and notes are append-only and cannot be changed here.
    """
    record = await ledger.update_record(fee_id, fee_in)
    return SuccessResponse(data=FeeRecordResponse.model_validate(record), message="Fee record updated successfully")


@router.delete("/{fee_id}", response_model=SuccessResponse)
async def delete_fee_record(
    fee_id: UUID,
    current_user: deps.CurrentUser = Depends(deps.require_admin),
    ledger: FeeLedgerService = Depends(deps.get_fee_ledger),
) -> Any:
    await ledger.delete_record(fee_id)
    return SuccessResponse(data=None, message="Fee record deleted successfully")


@router.post("/{fee_id}/payments", response_model=SuccessResponse[FeeRecordResponse])
async def add_payment(
    fee_id: UUID,
    payment_in: PaymentCreate,
    current_user: deps.CurrentUser = Depends(deps.get_current_user),
    ledger: FeeLedgerService = Depends(deps.get_fee_ledger),
) -> Any:
    record = await ledger.append_payment(fee_id, payment_in)
    return SuccessResponse(data=FeeRecordResponse.model_validate(record), message="Payment added successfully")


@router.post("/{fee_id}/notes", response_model=SuccessResponse[FeeRecordResponse])
async def add_note(
    fee_id: UUID,
    note_in: NoteCreate,
    current_user: deps.CurrentUser = Depends(deps.get_current_user),
    ledger: FeeLedgerService = Depends(deps.get_fee_ledger),
) -> Any:
    record = await ledger.append_note(fee_id, note_in)
    return SuccessResponse(data=FeeRecordResponse.model_validate(record), message="Note added successfully")

"""Fee ledger request/response schemas (camelCase on the wire)"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, List, Optional
from uuid import UUID

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from app.models.enums import FeeStatus, FeeTerm
from app.schemas.responses import PaginationMeta


def _to_float(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    return value


Money = Annotated[float, BeforeValidator(_to_float)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


# --- Ledger entries ---

class PaymentCreate(CamelModel):
    date: date
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    method: str = Field(..., min_length=1, max_length=50)
    reference: Optional[str] = Field(None, max_length=255)


class PaymentResponse(CamelModel):
    id: UUID
    date: date
    amount: Money
    method: str
    reference: Optional[str] = None
    created_at: datetime


class NoteCreate(CamelModel):
    date: date
    text: str = Field(..., min_length=1)


class NoteResponse(CamelModel):
    id: UUID
    date: date
    text: str
    created_at: datetime


# --- Fee records ---

class StudentBrief(CamelModel):
    """Minimal student fields populated onto fee records"""
    id: UUID
    admission_number: str
    first_name: str
    last_name: str
    class_id: UUID
    section_id: UUID


class FeeRecordCreate(CamelModel):
    student_id: UUID
    serial_number: str = Field(..., min_length=1, max_length=64)
    fee_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    academic_year: str = Field(..., min_length=1, max_length=20)
    term: FeeTerm
    # Defaults to the student's admission date, then today
    admission_date: Optional[date] = None


class FeeRecordUpdate(CamelModel):
    """
    Administrative field replace. Supplying status stores it verbatim as an
    override; otherwise status is re-derived from the ledger.
    """
    model_config = ConfigDict(extra="forbid")

    fee_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    academic_year: Optional[str] = Field(None, min_length=1, max_length=20)
    term: Optional[FeeTerm] = None
    next_payment_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[FeeStatus] = None


class FeeRecordResponse(CamelModel):
    id: UUID
    student_id: UUID
    student: Optional[StudentBrief] = None
    serial_number: str
    fee_amount: Money
    total_paid: Money
    balance: Money
    status: FeeStatus
    status_override: bool = False
    admission_date: date
    next_payment_date: date
    due_date: date
    academic_year: str
    term: FeeTerm
    payments: List[PaymentResponse] = []
    notes: List[NoteResponse] = []
    created_at: datetime
    updated_at: datetime


# --- Bulk import ---

class ExternalFeeRow(CamelModel):
    """
    One row of an external fee export. Keys follow the legacy export
    (admissionNumber, feeAmount, firstName, class, section, ...).
    Blank strings are treated as missing.
    """
    admission_number: str = Field(..., min_length=1, max_length=64)
    serial_number: Optional[str] = Field(None, max_length=64)
    fee_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    admission_date: Optional[date] = None
    next_payment_date: Optional[date] = None
    due_date: Optional[date] = None
    status: Optional[FeeStatus] = None
    payments: List[PaymentCreate] = []
    notes: List[NoteCreate] = []
    academic_year: Optional[str] = Field(None, max_length=20)
    term: FeeTerm = FeeTerm.ANNUAL

    # Student fields, used only when the admission number is unknown
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    class_id: Optional[UUID] = Field(None, validation_alias=AliasChoices("classId", "class", "class_id"))
    section_id: Optional[UUID] = Field(None, validation_alias=AliasChoices("sectionId", "section", "section_id"))
    contact_number: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    parent_name: Optional[str] = None
    parent_contact: Optional[str] = None
    student_notes: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def blank_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and not value.strip() else value)
                for key, value in data.items()
            }
        return data

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    def student_defaults(self) -> Dict[str, Any]:
        """Row-supplied student fields; placeholders fill in the rest."""
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "date_of_birth": self.date_of_birth,
            "class_id": self.class_id,
            "section_id": self.section_id,
            "admission_date": self.admission_date,
            "contact_number": self.contact_number,
            "email": self.email,
            "address": self.address,
            "parent_name": self.parent_name,
            "parent_contact": self.parent_contact,
            "notes": self.student_notes,
        }


class ImportRowError(CamelModel):
    index: int
    admission_number: Optional[str] = None
    serial_number: Optional[str] = None
    code: str
    error: str


class FeeImportResult(CamelModel):
    """
    success_count/error_count cover the whole batch; errors is always
    complete while imported_records holds only the first page of successes.
    """
    success_count: int
    error_count: int
    errors: List[ImportRowError]
    imported_records: List[FeeRecordResponse]


class FeeImportResponse(BaseModel):
    success: bool = True
    data: FeeImportResult
    pagination: PaginationMeta
    message: str


# --- Reports ---

class ClassFeeReport(CamelModel):
    class_id: UUID
    academic_year: str
    total_students: int
    total_records: int
    total_due: Money
    total_collected: Money
    pending_amount: Money
    collection_percentage: float
    status_counts: Dict[str, int]
    fee_records: List[FeeRecordResponse]


class StatusBucket(CamelModel):
    count: int
    total_due: Money
    total_collected: Money


class FeeStatusSummary(CamelModel):
    academic_year: Optional[str] = None
    total_records: int
    total_due: Money
    total_collected: Money
    pending_amount: Money
    collection_percentage: float
    by_status: Dict[str, StatusBucket]

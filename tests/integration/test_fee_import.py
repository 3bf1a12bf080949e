"""Integration tests: bulk fee import and student reconciliation."""

import uuid
from datetime import date

import pytest
from sqlalchemy import func, select

from app.config import settings
from app.core.exceptions import ValidationError
from app.models.enums import FeeStatus
from app.models.fee import FeeRecord
from app.models.student import Student
from app.services.fee_import_service import FeeImportService, generate_serial_number

TODAY = date(2024, 2, 20)
CLASS_ID = "11111111-1111-1111-1111-111111111111"


@pytest.fixture
def importer(db_session) -> FeeImportService:
    return FeeImportService(db_session)


def _row(admission_number, serial=None, amount=1000, **extra):
    row = {"admissionNumber": admission_number, "feeAmount": amount, "admissionDate": "2024-01-10"}
    if serial is not None:
        row["serialNumber"] = serial
    row.update(extra)
    return row


async def _count(db_session, model, *criteria) -> int:
    query = select(func.count()).select_from(model)
    if criteria:
        query = query.where(*criteria)
    return (await db_session.execute(query)).scalar_one()


async def test_rows_for_existing_students(importer, make_student, db_session):
    student = await make_student(admission_number="ADM-1")

    result = await importer.import_batch([_row("ADM-1", "SN-1"), _row("ADM-1", "SN-2")], today=TODAY)

    assert result.success_count == 2
    assert result.error_count == 0
    assert {r.student_id for r in result.imported_records} == {student.id}
    assert await _count(db_session, Student) == 1


async def test_malformed_row_is_isolated(importer, db_session):
    rows = [
        _row("ADM-1", "SN-1"),
        {"admissionNumber": "ADM-2", "serialNumber": "SN-2"},
        _row("ADM-3", "SN-3"),
    ]

    result = await importer.import_batch(rows, today=TODAY)

    assert result.success_count == 2
    assert result.error_count == 1
    error = result.errors[0]
    assert error.index == 1
    assert error.code == "VALIDATION_ERROR"
    assert error.admission_number == "ADM-2"
    assert error.serial_number == "SN-2"
    assert "feeAmount" in error.error
    assert await _count(db_session, FeeRecord) == 2


async def test_non_object_row_is_reported(importer):
    result = await importer.import_batch(["junk", _row("ADM-1", "SN-1")], today=TODAY)
    assert result.success_count == 1
    assert result.errors[0].index == 0
    assert result.errors[0].admission_number is None


async def test_repeated_unknown_admission_creates_one_student(importer, db_session):
    rows = [_row("NEW-1", "SN-1", firstName="Chidi"), _row("NEW-1", "SN-2")]

    result = await importer.import_batch(rows, today=TODAY)

    assert result.success_count == 2
    assert await _count(db_session, Student, Student.admission_number == "NEW-1") == 1
    assert len({r.student_id for r in result.imported_records}) == 1


async def test_placeholder_student_fields(importer, db_session):
    await importer.import_batch([_row("NEW-1", "SN-1", firstName="Chidi", **{"class": CLASS_ID})], today=TODAY)

    student = (await db_session.execute(select(Student).where(Student.admission_number == "NEW-1"))).scalar_one()
    assert student.first_name == "Chidi"
    assert student.last_name == settings.PLACEHOLDER_TEXT
    assert student.parent_name == settings.PLACEHOLDER_TEXT
    assert str(student.class_id) == CLASS_ID
    assert student.section_id == settings.PLACEHOLDER_SECTION_ID
    assert student.admission_date == date(2024, 1, 10)


async def test_rerun_reports_conflicts(importer, db_session):
    rows = [_row("ADM-1", "SN-1"), _row("ADM-2", "SN-2")]
    await importer.import_batch(rows, today=TODAY)

    result = await importer.import_batch(rows, today=TODAY)

    assert result.success_count == 0
    assert [e.code for e in result.errors] == ["CONFLICT", "CONFLICT"]
    assert await _count(db_session, FeeRecord) == 2
    assert await _count(db_session, Student) == 2


async def test_placeholder_survives_failed_row(importer, db_session):
    await importer.import_batch([_row("ADM-1", "SN-1")], today=TODAY)

    result = await importer.import_batch([_row("NEW-9", "SN-1")], today=TODAY)

    assert result.errors[0].code == "CONFLICT"
    assert await _count(db_session, Student, Student.admission_number == "NEW-9") == 1


async def test_missing_serial_is_generated(importer):
    result = await importer.import_batch([_row("ADM-1"), _row("ADM-1")], today=TODAY)

    serials = [r.serial_number for r in result.imported_records]
    assert result.success_count == 2
    assert all(s.startswith("SN") for s in serials)
    assert serials[0].endswith("-0")
    assert serials[1].endswith("-1")


def test_generate_serial_number():
    assert generate_serial_number(1700000000000, 3) == "SN1700000000000-3"


async def test_explicit_status_is_an_override(importer):
    result = await importer.import_batch([_row("ADM-1", "SN-1", status="PAID")], today=TODAY)

    record = result.imported_records[0]
    assert record.status == FeeStatus.PAID
    assert record.status_override is True
    assert record.total_paid == 0


async def test_payments_in_row_derive_status(importer):
    row = _row(
        "ADM-1",
        "SN-1",
        payments=[{"date": "2024-02-01", "amount": 400, "method": "transfer", "reference": "TX-1"}],
        notes=[{"date": "2024-02-01", "text": "Imported"}],
    )

    result = await importer.import_batch([row], today=TODAY)

    record = result.imported_records[0]
    assert record.status == FeeStatus.PARTIAL
    assert record.status_override is False
    assert record.total_paid == 400
    assert record.payments[0].reference == "TX-1"
    assert record.notes[0].text == "Imported"


async def test_row_schedule_fields_are_kept(importer):
    row = _row("ADM-1", "SN-1", nextPaymentDate="2024-03-01", dueDate="2024-03-31", academicYear="2023/2024")
    record = (await importer.import_batch([row], today=TODAY)).imported_records[0]

    assert record.next_payment_date == date(2024, 3, 1)
    assert record.due_date == date(2024, 3, 31)
    assert record.academic_year == "2023/2024"


async def test_preview_is_truncated_errors_are_complete(importer):
    rows = [_row(f"ADM-{i}", f"SN-{i}") for i in range(12)]
    rows += [{"admissionNumber": f"BAD-{i}"} for i in range(3)]

    result = await importer.import_batch(rows, today=TODAY)

    assert result.success_count == 12
    assert result.error_count == 3
    assert len(result.imported_records) == settings.IMPORT_PREVIEW_PAGE_SIZE
    assert [e.index for e in result.errors] == [12, 13, 14]


async def test_empty_batch(importer):
    result = await importer.import_batch([], today=TODAY)
    assert result.success_count == 0
    assert result.errors == []


async def test_non_array_payload_is_rejected(importer):
    with pytest.raises(ValidationError):
        await importer.import_batch({"admissionNumber": "ADM-1"})


async def test_malformed_class_id_is_row_error(importer):
    result = await importer.import_batch([_row("NEW-1", "SN-1", classId=str(uuid.uuid4())[:8])], today=TODAY)
    assert result.errors[0].code == "VALIDATION_ERROR"


async def test_unschedulable_date_is_row_error(importer, db_session):
    rows = [
        _row("ADM-1", "SN-1"),
        _row("ADM-2", "SN-2", admissionDate="9999-12-31"),
        _row("ADM-3", "SN-3"),
    ]

    result = await importer.import_batch(rows, today=TODAY)

    assert result.success_count == 2
    assert result.error_count == 1
    assert result.errors[0].index == 1
    assert result.errors[0].code == "VALIDATION_ERROR"
    assert await _count(db_session, FeeRecord) == 2


async def test_zero_fee_row_is_paid(importer):
    result = await importer.import_batch([_row("ADM-1", "SN-1", amount=0)], today=date(2024, 6, 1))

    record = result.imported_records[0]
    assert record.status == FeeStatus.PAID
    assert record.status_override is False

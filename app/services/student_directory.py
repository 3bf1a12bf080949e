"""Student directory adapter: the only student capabilities the fee core uses"""

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from sqlalchemy import insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import NotFoundError
from app.models.enums import StudentStatus
from app.models.student import Student
from app.utils.time import get_utc_now, utc_today

logger = logging.getLogger(__name__)

# Dialects with a native "insert if absent" statement
_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

_TEXT_FIELDS = ("first_name", "last_name", "contact_number", "address", "parent_name", "parent_contact")


class StudentDirectory:
    """Read/create-only access to students by id or admission number"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, student_id: UUID) -> Student:
        result = await self.db.execute(select(Student).where(Student.id == student_id))
        student = result.scalar_one_or_none()
        if student is None:
            raise NotFoundError("Student not found")
        return student

    async def find_by_admission_number(self, admission_number: str) -> Optional[Student]:
        result = await self.db.execute(
            select(Student)
            .where(Student.admission_number == admission_number)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_ids_in_class(self, class_id: UUID) -> List[UUID]:
        result = await self.db.execute(select(Student.id).where(Student.class_id == class_id))
        return list(result.scalars().all())

    @staticmethod
    def placeholder_values(admission_number: str, defaults: Mapping[str, Any]) -> Dict[str, Any]:
        """Minimal valid student: supplied values, placeholders for the rest."""
        today = utc_today()
        values: Dict[str, Any] = {
            "admission_number": admission_number,
            "date_of_birth": defaults.get("date_of_birth") or today,
            "class_id": defaults.get("class_id") or settings.PLACEHOLDER_CLASS_ID,
            "section_id": defaults.get("section_id") or settings.PLACEHOLDER_SECTION_ID,
            "admission_date": defaults.get("admission_date") or today,
            "email": defaults.get("email"),
            "notes": defaults.get("notes"),
            "status": StudentStatus.ACTIVE,
        }
        for field in _TEXT_FIELDS:
            values[field] = defaults.get(field) or settings.PLACEHOLDER_TEXT
        return values

    async def create_placeholder(self, admission_number: str, defaults: Mapping[str, Any]) -> Student:
        """
        Insert a placeholder student unless the admission number already exists,
        then return the stored student. Atomic on PostgreSQL and SQLite
        (INSERT ... ON CONFLICT DO NOTHING); other dialects fall back to
        insert-and-catch on the unique constraint. Commits.
        """
        new_id = uuid.uuid4()
        now = get_utc_now()
        values = self.placeholder_values(admission_number, defaults)
        values.update(id=new_id, created_at=now, updated_at=now)

        dialect = self.db.get_bind().dialect.name
        upsert = _UPSERT_INSERTS.get(dialect)
        if upsert is not None:
            stmt = upsert(Student).values(**values).on_conflict_do_nothing(index_elements=["admission_number"])
            await self.db.execute(stmt)
            await self.db.commit()
        else:
            try:
                await self.db.execute(insert(Student).values(**values))
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()

        student = await self.find_by_admission_number(admission_number)
        if student is None:
            raise NotFoundError(f"Student {admission_number} could not be resolved")

        if student.id == new_id:
            logger.info(
                "Placeholder student created",
                extra={"student_id": str(student.id), "admission_number": admission_number},
            )
        return student

    async def resolve_or_create(self, admission_number: str, defaults: Mapping[str, Any]) -> Student:
        """Existing student for the admission number, or a new placeholder."""
        student = await self.find_by_admission_number(admission_number)
        if student is not None:
            return student
        return await self.create_placeholder(admission_number, defaults)

"""Student directory record (owned by the student service, read/create only here)"""

from sqlalchemy import Column, Date, String, Text, Uuid

from app.models.base import BaseModel, value_enum
from app.models.enums import StudentStatus


class Student(BaseModel):
    """
    A student as known to the student directory.

    admission_number is the natural key used to reconcile external fee data;
    its uniqueness is enforced by the store, not by lookups.
    """
    __tablename__ = "students"

    admission_number = Column(String(64), unique=True, nullable=False, index=True)

    # Personal Information
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    date_of_birth = Column(Date, nullable=False)

    # Placement (classes and sections live in the academic service)
    class_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    section_id = Column(Uuid(as_uuid=True), nullable=False)
    admission_date = Column(Date, nullable=True)

    # Contact
    contact_number = Column(String(50), nullable=False)
    email = Column(String(255), nullable=True)
    address = Column(String(500), nullable=False)
    parent_name = Column(String(255), nullable=False)
    parent_contact = Column(String(50), nullable=False)

    status = Column(value_enum(StudentStatus, "student_status"), default=StudentStatus.ACTIVE, nullable=False)
    notes = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Student {self.admission_number}>"

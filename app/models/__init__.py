"""Models Package - Export all models for easy imports"""

from app.models.base import BaseModel
from app.models.enums import FeeStatus, FeeTerm, StudentStatus, UserRole
from app.models.student import Student
from app.models.fee import FeeNote, FeePayment, FeeRecord


__all__ = [
    # Base classes
    "BaseModel",

    # Enums
    "FeeStatus",
    "FeeTerm",
    "StudentStatus",
    "UserRole",

    # Students
    "Student",

    # Fees
    "FeeRecord",
    "FeePayment",
    "FeeNote",
]

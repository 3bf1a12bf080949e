"""Centralized Enum Definitions"""

import enum


# Authentication context (issued by the auth service)
class UserRole(str, enum.Enum):
    """Roles carried in access tokens"""
    SCHOOL_ADMIN = "school_admin"
    ACCOUNTANT = "accountant"
    TEACHER = "teacher"


# Students (external directory)
class StudentStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


# Fees
class FeeStatus(str, enum.Enum):
    """Derived fee record status; see app.services.fee_status.derive_status"""
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class FeeTerm(str, enum.Enum):
    """Billing period a fee record belongs to"""
    TERM_1 = "Term 1"
    TERM_2 = "Term 2"
    TERM_3 = "Term 3"
    ANNUAL = "Annual"

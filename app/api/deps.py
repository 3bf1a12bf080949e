"""API Dependencies"""

from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_token
from app.database import get_db
from app.models.enums import UserRole
from app.services.fee_import_service import FeeImportService
from app.services.fee_report_service import FeeReportService
from app.services.fee_service import FeeLedgerService

# Security scheme for bearer token
security = HTTPBearer()

ADMIN_ROLES = {UserRole.SCHOOL_ADMIN.value}


class CurrentUser(BaseModel):
    """Verified user context taken from the access token claims"""
    id: str
    role: Optional[str] = None
    school_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    Get current authenticated user from JWT token.

    Raises:
        HTTPException: If the token is invalid, expired or not an access token
    """
    payload = decode_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id: Optional[str] = payload.get("sub")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentUser(id=str(user_id), role=payload.get("role"), school_id=payload.get("school_id"))


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """Administrative operations: update, delete and bulk import of fee records."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions",
        )
    return current_user


def get_fee_ledger(db: AsyncSession = Depends(get_db)) -> FeeLedgerService:
    return FeeLedgerService(db)


def get_fee_importer(db: AsyncSession = Depends(get_db)) -> FeeImportService:
    return FeeImportService(db)


def get_fee_reporter(db: AsyncSession = Depends(get_db)) -> FeeReportService:
    return FeeReportService(db)

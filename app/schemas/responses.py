"""Standardized API Response Schemas"""

import math
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field


T = TypeVar('T')


class SuccessResponse(BaseModel, Generic[T]):
    """
    Standard success response envelope.

    Example:
        {
            "success": true,
            "data": {...},
            "message": "Operation successful"
        }
    """
    success: bool = True
    data: T
    message: str = "Operation successful"


class ErrorDetail(BaseModel):
    """Error details structure"""
    code: str
    message: str
    details: Optional[Any] = None
    retryable: Optional[bool] = None


class ErrorResponse(BaseModel):
    """
    Standard error response envelope.

    Example:
        {
            "success": false,
            "message": "Fee record not found",
            "error": {
                "code": "NOT_FOUND",
                "message": "Fee record not found"
            }
        }
    """
    success: bool = False
    message: str
    error: Optional[ErrorDetail] = None


class PaginationMeta(BaseModel):
    """Pagination metadata"""
    total: int = Field(..., ge=0, description="Total number of items")
    page: int = Field(..., ge=1, description="Current page number")
    limit: int = Field(..., ge=1, description="Items per page")
    pages: int = Field(..., ge=0, description="Total number of pages")

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PaginationMeta":
        return cls(total=total, page=page, limit=limit, pages=math.ceil(total / limit) if limit else 0)


class PaginatedResponse(BaseModel, Generic[T]):
    """
    Paginated response with metadata.

    Example:
        {
            "success": true,
            "data": [...],
            "pagination": {
                "total": 50,
                "page": 1,
                "limit": 10,
                "pages": 5
            },
            "message": "Operation successful"
        }
    """
    success: bool = True
    data: list[T]
    pagination: PaginationMeta
    message: str = "Operation successful"

"""Domain error taxonomy rendered by the API exception handlers"""

from typing import Any, Dict, List, Optional

from fastapi import status
from pydantic import ValidationError as PydanticValidationError


class AppError(Exception):
    """Base exception for service layer errors."""

    code = "APP_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            error["details"] = self.details
        return error


class ValidationError(AppError):
    """Missing or malformed input. Never retried."""

    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> "ValidationError":
        details = format_validation_errors(exc.errors())
        message = "; ".join(f"{d['field']}: {d['message']}" if d["field"] else d["message"] for d in details)
        return cls(message or "Invalid input", details=details)


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Uniqueness violation (serial number, duplicate key)."""

    code = "CONFLICT"
    status_code = status.HTTP_409_CONFLICT


class DependencyUnavailable(AppError):
    """The store is unreachable or timed out. Safe for the caller to retry."""

    code = "DEPENDENCY_UNAVAILABLE"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def to_dict(self) -> Dict[str, Any]:
        error = super().to_dict()
        error["retryable"] = True
        return error


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic/FastAPI error dicts into {field, message} pairs."""
    formatted = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "path", "query")]
        formatted.append({"field": ".".join(loc), "message": err.get("msg", "Invalid value")})
    return formatted

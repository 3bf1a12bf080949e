"""Unit tests for bearer token helpers and the error taxonomy."""

from datetime import timedelta

import pytest
from pydantic import BaseModel, ValidationError as PydanticValidationError

from app.core.exceptions import (
    ConflictError,
    DependencyUnavailable,
    NotFoundError,
    ValidationError,
    format_validation_errors,
)
from app.core.security import create_access_token, decode_token


def test_access_token_round_trip():
    token = create_access_token({"sub": "user-1", "role": "school_admin"})
    payload = decode_token(token)
    assert payload["sub"] == "user-1"
    assert payload["role"] == "school_admin"
    assert payload["type"] == "access"


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "user-1"}, expires_delta=timedelta(minutes=-5))
    assert decode_token(token) is None


def test_garbage_token_is_rejected():
    assert decode_token("not-a-jwt") is None


def test_error_status_codes():
    assert ValidationError("x").status_code == 400
    assert NotFoundError("x").status_code == 404
    assert ConflictError("x").status_code == 409
    assert DependencyUnavailable("x").status_code == 500


def test_dependency_unavailable_is_retryable():
    error = DependencyUnavailable("Database is unavailable").to_dict()
    assert error == {"code": "DEPENDENCY_UNAVAILABLE", "message": "Database is unavailable", "retryable": True}
    assert "retryable" not in ConflictError("dup").to_dict()


class _Sample(BaseModel):
    amount: int


def test_validation_error_from_pydantic():
    with pytest.raises(PydanticValidationError) as exc_info:
        _Sample.model_validate({"amount": "many"})
    error = ValidationError.from_pydantic(exc_info.value)
    assert error.code == "VALIDATION_ERROR"
    assert error.details[0]["field"] == "amount"
    assert error.message.startswith("amount:")


def test_format_validation_errors_strips_location_prefix():
    formatted = format_validation_errors(
        [{"loc": ("body", "feeAmount"), "msg": "Field required"}, {"loc": ("path", "fee_id"), "msg": "bad"}]
    )
    assert formatted == [
        {"field": "feeAmount", "message": "Field required"},
        {"field": "fee_id", "message": "bad"},
    ]

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorDetail(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class AppError(Exception):
    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(code="not_found", message=message, status_code=404)


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request") -> None:
        super().__init__(code="bad_request", message=message, status_code=400)


class PermissionDeniedError(AppError):
    def __init__(self, message: str = "Not permitted") -> None:
        super().__init__(code="forbidden", message=message, status_code=403)


class InvalidInputError(AppError):
    """Raised when engine input has the wrong shape, as opposed to bad rows."""

    def __init__(self, message: str = "Invalid input") -> None:
        super().__init__(code="invalid_input", message=message, status_code=422)


class AggregationMismatchError(AppError):
    def __init__(self, input_total: float, bucket_total: float) -> None:
        super().__init__(
            code="aggregation_mismatch",
            message="Aggregated revenue does not match filtered revenue",
            status_code=500,
            details={"inputTotal": input_total, "bucketTotal": bucket_total},
        )
        self.input_total = input_total
        self.bucket_total = bucket_total


class ErrorEnvelope(BaseModel):
    error: ErrorDetail


def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    envelope = ErrorEnvelope(
        error=ErrorDetail(code=exc.code, message=exc.message, details=exc.details)
    )
    return JSONResponse(status_code=exc.status_code, content=envelope.model_dump())


def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    envelope = ErrorEnvelope(
        error=ErrorDetail(
            code="validation_error",
            message="Validation error",
            details={"errors": exc.errors()},
        )
    )
    return JSONResponse(status_code=422, content=envelope.model_dump())

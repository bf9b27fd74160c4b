"""
Error types and FastAPI exception handlers.

- Defines the ApiError hierarchy raised by the authorization core.
- Maps errors to a consistent JSON shape for clients.
- Registers FastAPI exception handlers.

Error taxonomy:
- ValidationError: a required field is missing/empty or a payload has the wrong shape.
- StorageCorruptionError: the persisted tenant table cannot be decoded. Stores
  recover from it locally (empty table); it never reaches a caller.
- StorageUnavailableError: tenant-store I/O failed; the operation fails.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError


__all__ = [
    "ApiError",
    "ValidationError",
    "StorageCorruptionError",
    "StorageUnavailableError",
    "ErrorBody",
    "ErrorResponse",
    "register_exception_handlers",
]


# -------------------------------
# Error response models
# -------------------------------

class ErrorBody(BaseModel):
    code: str = Field(..., description="Stable machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict = Field(default_factory=dict, description="Optional structured details")


class ErrorResponse(BaseModel):
    error: ErrorBody
    request_id: Optional[str] = Field(default=None, description="Client-supplied correlation/request id")


# -------------------------------
# Exception types
# -------------------------------

class ApiError(Exception):
    """
    Base error with HTTP status and machine code.
    """
    status_code: int = 400
    code: str = "bad_request"

    def __init__(self, message: str, *, details: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(ApiError):
    status_code = 400
    code = "validation_error"


class StorageCorruptionError(ApiError):
    status_code = 500
    code = "storage_corruption"


class StorageUnavailableError(ApiError):
    status_code = 503
    code = "storage_unavailable"


# -------------------------------
# Handlers
# -------------------------------

def _make_json_response(request: Request, exc: ApiError) -> JSONResponse:
    req_id = request.headers.get("x-request-id") or request.headers.get("x-correlation-id")

    body = ErrorResponse(
        error=ErrorBody(code=exc.code, message=exc.message, details=exc.details or {}),
        request_id=req_id,
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


async def api_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    - ApiError: mapped directly.
    - Pydantic ValidationError raised inside a handler: mapped to 400 validation_error.
    - Other exceptions: mapped to 500 server_error.
    """
    if isinstance(exc, ApiError):
        return _make_json_response(request, exc)

    if isinstance(exc, PydanticValidationError):
        details: dict[str, Any] = {"errors": exc.errors(include_url=False, include_context=False)}
        return _make_json_response(request, ValidationError("Validation error", details=details))

    return await unhandled_error_handler(request, exc)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    generic = ApiError("Internal server error")
    generic.status_code = 500
    generic.code = "server_error"
    return _make_json_response(request, generic)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register exception handlers on the FastAPI app.
    """
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(PydanticValidationError, api_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

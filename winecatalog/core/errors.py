"""
Wine Catalog - Error Handling

Every failure raised below the HTTP layer is a CatalogError subclass.
setup_error_handlers() renders those, framework HTTP errors, request
validation errors and anything unexpected into one JSON body:

    {"error": "not_found", "message": "Product not found",
     "status_code": 404, "request_id": "3f9c...", "details": [...]}
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from .logging import get_request_id

logger = logging.getLogger(__name__)


class ErrorDetail(BaseModel):
    """One offending field."""

    field: str | None = None
    message: str
    code: str | None = None


class ErrorResponse(BaseModel):
    error: str
    message: str
    status_code: int
    request_id: str | None = None
    details: list[ErrorDetail] | None = None


# =============================================================================
# Exceptions
# =============================================================================


class CatalogError(Exception):
    """Base class; subclasses pick the status, code and default message."""

    status_code: int = 500
    error_code: str = "internal_error"
    default_message: str = "Internal error"

    def __init__(
        self,
        message: str | None = None,
        *,
        details: list[ErrorDetail] | None = None,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.message = message or self.default_message
        super().__init__(self.message)
        self.details = details
        self.headers = headers
        if status_code is not None:
            self.status_code = status_code


class ValidationError(CatalogError):
    status_code = 400
    error_code = "validation_error"
    default_message = "Invalid payload"

    @property
    def messages(self) -> list[str]:
        """``field: message`` per detail, or just the message when there are none."""
        if not self.details:
            return [self.message]
        return [f"{d.field}: {d.message}" if d.field else d.message for d in self.details]


class NotFoundError(CatalogError):
    """Missing, or owned by someone else: callers cannot tell the difference."""

    status_code = 404
    error_code = "not_found"
    default_message = "Resource not found"


class AuthError(CatalogError):
    status_code = 401
    error_code = "unauthorized"
    default_message = "Authentication required"

    def __init__(self, message: str | None = None, status_code: int = 401):
        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        super().__init__(message, status_code=status_code, headers=headers)


class ConflictError(CatalogError):
    """A unique constraint rejected the write."""

    status_code = 400
    error_code = "conflict"
    default_message = "Duplicate value violates a unique constraint"


class UpstreamError(CatalogError):
    """Spreadsheet decoder, identity provider or database failed."""

    error_code = "upstream_error"
    default_message = "Upstream service failed"


class StorageIOError(CatalogError):
    error_code = "storage_error"
    default_message = "File storage operation failed"


def details_from_pydantic(errors: list[dict[str, Any]]) -> list[ErrorDetail]:
    """Convert pydantic ``exc.errors()`` into ErrorDetail entries."""
    details = []
    for error in errors:
        loc = error.get("loc") or ()
        message = str(error.get("msg", "Invalid value")).removeprefix("Value error, ")
        details.append(
            ErrorDetail(
                field=".".join(str(part) for part in loc) or None,
                message=message,
                code=error.get("type"),
            )
        )
    return details


# =============================================================================
# Handlers
# =============================================================================

_HTTP_ERROR_CODES = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
}


def error_response(
    status_code: int,
    error: str,
    message: str,
    details: list[ErrorDetail] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        message=message,
        status_code=status_code,
        request_id=get_request_id() or None,
        details=details,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True), headers=headers)


def setup_error_handlers(app: FastAPI) -> None:
    """Register the catalog's exception handlers on ``app``."""

    @app.exception_handler(CatalogError)
    async def handle_catalog_error(request: Request, exc: CatalogError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}",
                exc_info=exc.__cause__ is not None,
            )
        return error_response(exc.status_code, exc.error_code, exc.message, exc.details, exc.headers)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(
            exc.status_code,
            _HTTP_ERROR_CODES.get(exc.status_code, "internal_error"),
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Body problems are payload errors (400); bad path/query params stay 422.
        details = details_from_pydantic(list(exc.errors()))
        in_body = any((d.field or "").startswith("body") for d in details)
        logger.info(f"Rejected request to {request.url.path}: {len(details)} validation errors")
        return error_response(
            400 if in_body else 422,
            ValidationError.error_code,
            "Request validation failed",
            details,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled {type(exc).__name__} on {request.method} {request.url.path}", exc_info=exc)
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "internal_error",
            "An unexpected error occurred. Please try again later.",
        )

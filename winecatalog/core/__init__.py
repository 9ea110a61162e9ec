"""
Wine Catalog - Core Module

Errors, middleware, logging and request security.
"""

from .errors import (
    AuthError,
    CatalogError,
    ConflictError,
    ErrorDetail,
    ErrorResponse,
    NotFoundError,
    StorageIOError,
    UpstreamError,
    ValidationError,
    setup_error_handlers,
)
from .logging import get_request_id
from .middleware import RequestLoggingMiddleware

__all__ = [
    # Errors
    "CatalogError",
    "ValidationError",
    "NotFoundError",
    "AuthError",
    "ConflictError",
    "UpstreamError",
    "StorageIOError",
    "ErrorDetail",
    "ErrorResponse",
    "setup_error_handlers",
    # Middleware
    "RequestLoggingMiddleware",
    "get_request_id",
]

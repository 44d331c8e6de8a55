"""Utility functions and helpers."""

from folio.utils.auth import AuthContext, get_auth_context, require_admin
from folio.utils.exceptions import (
    ConflictError,
    FolioError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from folio.utils.responses import error, not_found, success, unauthorized, validation_error

__all__ = [
    # Response helpers
    "success",
    "error",
    "validation_error",
    "not_found",
    "unauthorized",
    # Auth
    "get_auth_context",
    "require_admin",
    "AuthContext",
    # Exceptions
    "FolioError",
    "NotFoundError",
    "ValidationError",
    "UnauthorizedError",
    "ConflictError",
]

"""
Core package initializer.

This package provides core utilities: password hashing, token handling,
the plan catalog and the application error types.
"""

from .security import (
    generate_password,
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)

from .errors import (
    AppError,
    ValidationError,
    AuthError,
    ForbiddenError,
    ProtectedAccountError,
    NotFoundError,
    ConflictError,
    QuotaExceededError,
    FileTooLargeError,
    StoreUnavailableError,
    InternalError,
)

__all__ = [
    # Security
    "generate_password",
    "create_access_token",
    "decode_token",
    "hash_password",
    "verify_password",
    # Errors
    "AppError",
    "ValidationError",
    "AuthError",
    "ForbiddenError",
    "ProtectedAccountError",
    "NotFoundError",
    "ConflictError",
    "QuotaExceededError",
    "FileTooLargeError",
    "StoreUnavailableError",
    "InternalError",
]

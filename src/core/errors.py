"""Domain error taxonomy shared by stores, services and the HTTP layer."""
from typing import Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationError(AppError):
    """Malformed or missing input."""
    status_code = 400
    code = "invalid_input"


class AuthError(AppError):
    """Bad credentials or missing authentication."""
    status_code = 401
    code = "invalid_credentials"


class ForbiddenError(AuthError):
    """Authenticated but not allowed to touch the resource."""
    status_code = 403
    code = "forbidden"


class ProtectedAccountError(ForbiddenError):
    """Attempt to delete or demote the root administrator."""
    code = "protected_account"


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"


class ConflictError(AppError):
    """Duplicate handle, already on a plan, payment no longer pending."""
    status_code = 409
    code = "conflict"


class QuotaExceededError(AppError):
    status_code = 413
    code = "quota_exceeded"


class FileTooLargeError(QuotaExceededError):
    code = "file_too_large"


class StoreUnavailableError(AppError):
    """Raised by a store when its backend cannot be reached."""
    status_code = 503
    code = "store_unavailable"


class InternalError(AppError):
    status_code = 500
    code = "internal_error"

"""Import all models for Alembic."""
from .base import TimestampMixin, utcnow
from .enums import PlanTier, PaymentStatus
from .user import User
from .file import HostedFile
from .payment import Payment

__all__ = [
    "TimestampMixin",
    "utcnow",
    "PlanTier",
    "PaymentStatus",
    "User",
    "HostedFile",
    "Payment",
]

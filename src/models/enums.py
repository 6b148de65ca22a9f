"""Enums for database models."""
import enum


class PlanTier(str, enum.Enum):
    """Storage plan tiers."""
    free = "free"
    basic = "basic"
    premium = "premium"


class PaymentStatus(str, enum.Enum):
    """Payment status."""
    pending = "pending"
    completed = "completed"
    failed = "failed"
    under_review = "under_review"


# Statuses from which a payment may still be completed or rejected.
OPEN_PAYMENT_STATUSES = (PaymentStatus.pending, PaymentStatus.under_review)

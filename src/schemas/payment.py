"""Payment and plan upgrade schemas."""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from uuid import UUID
from datetime import datetime

from src.models.enums import PaymentStatus, PlanTier


class InitiatePaymentRequest(BaseModel):
    plan: str = Field(..., min_length=1)


class VerifyPaymentRequest(BaseModel):
    payment_id: UUID
    transaction_id: str = Field(..., min_length=1, max_length=255)


class ReviewRequest(BaseModel):
    note: Optional[str] = Field(None, max_length=1000)


class PaymentIntent(BaseModel):
    payment_id: UUID
    plan: PlanTier
    amount: int
    upi_id: str
    message: str


class PlanState(BaseModel):
    """Account plan after a verification attempt."""
    payment_id: UUID
    status: PaymentStatus
    plan: PlanTier
    storage_limit: float
    plan_expiry: datetime
    already_active: bool = False
    message: str


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    plan: PlanTier
    amount: int
    currency: str
    status: PaymentStatus
    upi_id: Optional[str] = None
    transaction_id: Optional[str] = None
    verified_at: Optional[datetime] = None
    verified_by: Optional[str] = None
    review_note: Optional[str] = None
    created_at: datetime

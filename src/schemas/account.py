"""Account and authentication schemas."""
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from uuid import UUID
from datetime import datetime

from src.models.enums import PlanTier
from .payment import PaymentResponse


class RegisterRequest(BaseModel):
    """User registration request."""
    username: str = Field(..., min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(..., min_length=4, max_length=128)
    email: EmailStr


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Account as exposed to clients (no credential hash)."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    plan: PlanTier
    storage_used: float
    storage_limit: float
    plan_expiry: datetime
    total_files: int
    is_admin: bool
    created_at: datetime


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class AdminUserUpdate(BaseModel):
    """Fields an admin may change on an account."""
    plan: Optional[PlanTier] = None
    storage_limit: Optional[float] = Field(None, gt=0)
    is_admin: Optional[bool] = None


class AdminStatsResponse(BaseModel):
    total_users: int
    total_files: int
    completed_payments: int
    total_revenue: int
    total_storage_used: float
    recent_users: list[UserResponse]
    recent_payments: list[PaymentResponse]

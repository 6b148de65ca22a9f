"""Records exchanged across the store boundary.

Both the SQL and the in-memory store return these models, so services never
handle ORM instances directly.
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from src.models.enums import PaymentStatus, PlanTier

BYTES_PER_MB = 1024 * 1024


class AccountRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    hashed_password: str
    email: str
    plan: PlanTier
    storage_used: float
    storage_limit: float
    plan_expiry: datetime
    total_files: int
    is_admin: bool
    is_protected: bool
    created_at: datetime
    updated_at: datetime

    @property
    def storage_remaining(self) -> float:
        return max(0.0, self.storage_limit - self.storage_used)


class FileRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    owner_id: UUID
    stored_name: str
    original_name: str
    size_bytes: int
    content_type: str
    storage_path: str
    public_url: str
    download_count: int
    is_public: bool
    created_at: datetime
    updated_at: datetime

    @property
    def size_mb(self) -> float:
        return self.size_bytes / BYTES_PER_MB


class PaymentRecord(BaseModel):
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
    updated_at: datetime


class StoreStats(BaseModel):
    total_users: int = 0
    total_files: int = 0
    completed_payments: int = 0
    total_revenue: int = 0
    total_storage_used: float = 0.0

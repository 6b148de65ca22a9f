"""Payment model."""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
import uuid

from src.db.base import Base
from .base import TimestampMixin
from .enums import PaymentStatus, PlanTier


class Payment(Base, TimestampMixin):
    """Manually confirmed UPI payment for a plan upgrade."""

    __tablename__ = 'payments'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    owner_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)

    plan = Column(SQLEnum(PlanTier, name="plantier"), nullable=False)
    amount = Column(Integer, nullable=False)  # INR
    currency = Column(String(3), default='INR', nullable=False)
    status = Column(SQLEnum(PaymentStatus, name="paymentstatus"), default=PaymentStatus.pending, nullable=False, index=True)

    # UPI details
    upi_id = Column(String(255), nullable=True)
    transaction_id = Column(String(255), nullable=True)

    # Verification
    verified_at = Column(DateTime, nullable=True)
    verified_by = Column(String(64), nullable=True)
    review_note = Column(String, nullable=True)

    owner = relationship('User', back_populates='payments')

    def __repr__(self) -> str:
        return f'<Payment(id={self.id}, plan={self.plan}, status={self.status})>'

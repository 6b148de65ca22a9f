"""User (account) model."""
from sqlalchemy import Column, String, Boolean, Float, Integer, DateTime, Uuid, Enum as SQLEnum
from sqlalchemy.orm import relationship
import uuid

from src.db.base import Base
from .base import TimestampMixin
from .enums import PlanTier


class User(Base, TimestampMixin):
    """Registered account with a storage plan and quota counters."""

    __tablename__ = 'users'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    username = Column(String(64), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)

    # Plan and quota (sizes in MB)
    plan = Column(SQLEnum(PlanTier, name="plantier"), default=PlanTier.free, nullable=False, index=True)
    storage_used = Column(Float, default=0.0, nullable=False)
    storage_limit = Column(Float, default=100.0, nullable=False)
    plan_expiry = Column(DateTime, nullable=False)
    total_files = Column(Integer, default=0, nullable=False)

    is_admin = Column(Boolean, default=False, nullable=False)
    # Set once when the root administrator is provisioned.
    is_protected = Column(Boolean, default=False, nullable=False)

    # Relationships
    files = relationship('HostedFile', back_populates='owner', passive_deletes=True)
    payments = relationship('Payment', back_populates='owner', passive_deletes=True)

    def __repr__(self) -> str:
        return f'<User(id={self.id}, username={self.username}, plan={self.plan})>'

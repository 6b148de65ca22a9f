"""Hosted file model."""
from sqlalchemy import Column, String, BigInteger, Integer, Boolean, ForeignKey, Uuid
from sqlalchemy.orm import relationship
import uuid

from src.db.base import Base
from .base import TimestampMixin


class HostedFile(Base, TimestampMixin):
    """Metadata for an uploaded file."""

    __tablename__ = 'files'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4, index=True)
    owner_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)

    stored_name = Column(String(512), nullable=False)
    original_name = Column(String(512), nullable=False)
    size_bytes = Column(BigInteger, nullable=False)
    content_type = Column(String(255), nullable=False, default='application/octet-stream')
    storage_path = Column(String(1024), nullable=False)
    public_url = Column(String(1024), nullable=False)
    download_count = Column(Integer, default=0, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)

    owner = relationship('User', back_populates='files')

    def __repr__(self) -> str:
        return f'<HostedFile(id={self.id}, owner_id={self.owner_id}, size_bytes={self.size_bytes})>'

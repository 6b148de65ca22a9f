"""Base repository with common CRUD operations.

Repositories only flush; the caller owning the session decides when to
commit so several repository calls can share one transaction.
"""
from typing import TypeVar, Generic, Type, Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import desc, func, select, delete
from uuid import UUID

from src.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common database operations."""

    def __init__(self, model: Type[ModelType], db: Session):
        """
        Initialize repository.

        Args:
            model: SQLAlchemy model class
            db: Database session
        """
        self.model = model
        self.db = db

    def create(self, obj_in: Dict[str, Any]) -> ModelType:
        """
        Create new record.

        Args:
            obj_in: Dictionary with object data

        Returns:
            Created model instance
        """
        db_obj = self.model(**obj_in)
        self.db.add(db_obj)
        self.db.flush()
        self.db.refresh(db_obj)
        return db_obj

    def get(self, id: UUID, for_update: bool = False) -> Optional[ModelType]:
        """
        Get record by ID.

        Args:
            id: Record UUID
            for_update: Re-read the row, bypassing the identity map

        Returns:
            Model instance or None if not found
        """
        stmt = select(self.model).where(self.model.id == id)
        if for_update:
            stmt = stmt.execution_options(populate_existing=True)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_by_field(self, field_name: str, field_value: Any) -> Optional[ModelType]:
        """
        Get record by specific field value.

        Args:
            field_name: Name of the field to filter by
            field_value: Value to match

        Returns:
            Model instance or None if not found
        """
        if not hasattr(self.model, field_name):
            return None

        stmt = select(self.model).where(getattr(self.model, field_name) == field_value)
        return self.db.execute(stmt).scalars().first()

    def get_multi(
        self,
        limit: Optional[int] = None,
        filters: Optional[Dict[str, Any]] = None
    ) -> List[ModelType]:
        """
        Get records newest first, optionally filtered by column values.

        Args:
            limit: Maximum number of records to return
            filters: Dictionary of column:value filters

        Returns:
            List of records
        """
        stmt = select(self.model)

        if filters:
            for column, value in filters.items():
                if hasattr(self.model, column):
                    stmt = stmt.where(getattr(self.model, column) == value)

        stmt = stmt.order_by(desc(self.model.created_at))
        if limit:
            stmt = stmt.limit(limit)

        return list(self.db.execute(stmt).scalars().all())

    def update(self, id: UUID, obj_in: Dict[str, Any]) -> Optional[ModelType]:
        """
        Update record.

        Args:
            id: Record UUID
            obj_in: Dictionary with fields to update

        Returns:
            Updated model instance or None if not found
        """
        db_obj = self.get(id)
        if not db_obj:
            return None

        for field, value in obj_in.items():
            if hasattr(db_obj, field):
                setattr(db_obj, field, value)

        self.db.flush()
        self.db.refresh(db_obj)
        return db_obj

    def delete(self, id: UUID) -> bool:
        """
        Delete record.

        Args:
            id: Record UUID

        Returns:
            True if successful, False if record not found
        """
        db_obj = self.get(id)
        if not db_obj:
            return False

        self.db.delete(db_obj)
        self.db.flush()
        return True

    def delete_by_field(self, field_name: str, field_value: Any) -> int:
        """Delete every record matching a field value, returning the row count."""
        stmt = delete(self.model).where(getattr(self.model, field_name) == field_value)
        result = self.db.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount or 0

    def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """
        Count records.

        Args:
            filters: Dictionary of column:value filters

        Returns:
            Count of records
        """
        stmt = select(func.count(self.model.id))

        if filters:
            for column, value in filters.items():
                if hasattr(self.model, column):
                    stmt = stmt.where(getattr(self.model, column) == value)

        return self.db.execute(stmt).scalar() or 0

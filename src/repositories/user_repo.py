"""User repository extending base repository."""
from sqlalchemy.orm import Session
from sqlalchemy import func, select, update, case
from typing import Optional
from uuid import UUID

from src.repositories.base import BaseRepository
from src.models.user import User
from src.models.base import utcnow

# Float accumulation slack when comparing MB totals against a limit.
QUOTA_TOLERANCE_MB = 1e-9


class UserRepository(BaseRepository[User]):
    """Repository for account database operations."""

    def __init__(self, db: Session):
        super().__init__(User, db)

    def get_by_username(self, username: str) -> Optional[User]:
        return self.get_by_field('username', username)

    def get_protected(self) -> Optional[User]:
        """Return the provisioned root administrator, if any."""
        return self.get_by_field('is_protected', True)

    def reserve_storage(self, user_id: UUID, delta_mb: float) -> Optional[User]:
        """
        Add `delta_mb` to storage_used and one to total_files if it fits.

        The check and the increment are a single conditional UPDATE, so two
        concurrent reservations cannot both pass against a stale value.

        Args:
            user_id: Account UUID
            delta_mb: Size of the new file in MB

        Returns:
            Updated user, or None when the reservation would exceed the limit
        """
        stmt = (
            update(User)
            .where(
                User.id == user_id,
                User.storage_used + delta_mb <= User.storage_limit + QUOTA_TOLERANCE_MB,
            )
            .values(
                storage_used=User.storage_used + delta_mb,
                total_files=User.total_files + 1,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            return None
        return self.get(user_id, for_update=True)

    def release_storage(self, user_id: UUID, delta_mb: float, files: int = 1) -> Optional[User]:
        """
        Subtract `delta_mb` and `files`, clamping both counters at zero.

        Args:
            user_id: Account UUID
            delta_mb: Size to release in MB
            files: Number of files to remove from total_files

        Returns:
            Updated user or None if not found
        """
        stmt = (
            update(User)
            .where(User.id == user_id)
            .values(
                storage_used=case(
                    (User.storage_used - delta_mb < 0, 0.0),
                    else_=User.storage_used - delta_mb,
                ),
                total_files=case(
                    (User.total_files - files < 0, 0),
                    else_=User.total_files - files,
                ),
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            return None
        return self.get(user_id, for_update=True)

    def total_storage_used(self) -> float:
        return self.db.execute(select(func.coalesce(func.sum(User.storage_used), 0.0))).scalar() or 0.0

"""Hosted file repository extending base repository."""
from sqlalchemy.orm import Session
from sqlalchemy import update
from typing import Optional, List
from uuid import UUID

from src.repositories.base import BaseRepository
from src.models.file import HostedFile


class FileRepository(BaseRepository[HostedFile]):
    """Repository for file metadata operations."""

    def __init__(self, db: Session):
        super().__init__(HostedFile, db)

    def get_by_owner(self, owner_id: UUID) -> List[HostedFile]:
        """All files owned by an account, newest first."""
        return self.get_multi(filters={'owner_id': owner_id})

    def delete_by_owner(self, owner_id: UUID) -> int:
        return self.delete_by_field('owner_id', owner_id)

    def increment_downloads(self, file_id: UUID) -> Optional[HostedFile]:
        stmt = (
            update(HostedFile)
            .where(HostedFile.id == file_id)
            .values(download_count=HostedFile.download_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            return None
        return self.get(file_id, for_update=True)

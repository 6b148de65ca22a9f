"""File upload, listing and deletion against the owner's quota."""
import logging
import uuid
from typing import List, Optional
from uuid import UUID

from src.core.errors import ForbiddenError, NotFoundError
from src.schemas.file import FileMeta, FileResponse, StorageSummary, UploadResult
from src.schemas.records import AccountRecord, FileRecord
from src.services.quota import QuotaAccountant, bytes_to_mb
from src.services.storage.local import LocalStorage, StorageError
from src.store.base import Store

logger = logging.getLogger(__name__)


def storage_summary(account: AccountRecord) -> StorageSummary:
    return StorageSummary(
        used=account.storage_used,
        limit=account.storage_limit,
        remaining=account.storage_remaining,
        total_files=account.total_files,
    )


class FileService:
    """Registers uploaded artifacts and keeps quota counters in step."""

    def __init__(self, store: Store, storage: LocalStorage, quota: Optional[QuotaAccountant] = None):
        self.store = store
        self.storage = storage
        self.quota = quota or QuotaAccountant(store)

    def _discard_artifact(self, path: str) -> None:
        try:
            self.storage.delete(path)
        except StorageError as e:
            logger.error(f"Orphaned upload left at {path}: {e}")

    def upload_file(self, account_id: UUID, meta: FileMeta) -> UploadResult:
        """
        Register a file that the transport layer already wrote to disk.

        Order: account lookup, per-plan file size, aggregate reservation,
        record creation. Any failure removes the artifact; a failure after the
        reservation also releases it.

        Raises:
            NotFoundError: Unknown account
            FileTooLargeError: File exceeds the plan's single-file ceiling
            QuotaExceededError: File does not fit in the remaining storage
        """
        size_mb = bytes_to_mb(meta.size_bytes)
        try:
            account = self.store.get_account(account_id)
            if account is None:
                raise NotFoundError("User not found")
            self.quota.check_file_size(account, meta.size_bytes)

            with self.quota.serialized(account_id):
                self.quota.reserve(account_id, size_mb)
                try:
                    file_id = uuid.uuid4()
                    record = self.store.create_file({
                        "id": file_id,
                        "owner_id": account_id,
                        "stored_name": meta.stored_name,
                        "original_name": meta.original_name,
                        "size_bytes": meta.size_bytes,
                        "content_type": meta.content_type or "application/octet-stream",
                        "storage_path": meta.storage_path,
                        "public_url": self.storage.public_url(file_id),
                        "is_public": True,
                    })
                except Exception:
                    logger.exception(f"File record creation failed for {account_id}; releasing {size_mb:.2f}MB")
                    self.quota.release(account_id, size_mb)
                    raise
        except Exception:
            self._discard_artifact(meta.storage_path)
            raise

        account = self.store.get_account(account_id) or account
        logger.info(f"Hosted {record.original_name} ({size_mb:.2f}MB) for {account.username}")
        return UploadResult(
            file=FileResponse.model_validate(record),
            storage=storage_summary(account),
            message="File hosted successfully!",
        )

    def _owned_file(self, account_id: UUID, file_id: UUID) -> FileRecord:
        record = self.store.get_file(file_id)
        if record is None:
            raise NotFoundError("File not found")
        if record.owner_id != account_id:
            raise ForbiddenError("Not authorized")
        return record

    def delete_file(self, account_id: UUID, file_id: UUID) -> StorageSummary:
        """
        Delete one of the account's files and release its size.

        Raises:
            NotFoundError: Unknown file
            ForbiddenError: File belongs to another account
        """
        record = self._owned_file(account_id, file_id)
        with self.quota.serialized(account_id):
            removed = self.store.delete_file(file_id)
        if removed is None:
            raise NotFoundError("File not found")

        self._discard_artifact(removed.storage_path)
        account = self.store.get_account(account_id)
        if account is None:
            raise NotFoundError("User not found")
        logger.info(f"Deleted {record.original_name} for {account.username}")
        return storage_summary(account)

    def list_files(self, account_id: UUID) -> List[FileRecord]:
        """The account's files, newest first. A fresh query on every call."""
        return self.store.list_files(account_id)

    def get_file(self, file_id: UUID, viewer_id: Optional[UUID] = None) -> FileRecord:
        """Public file info; private files are only visible to their owner."""
        record = self.store.get_file(file_id)
        if record is None or (not record.is_public and record.owner_id != viewer_id):
            raise NotFoundError("File not found")
        return record

    def record_download(self, file_id: UUID) -> FileRecord:
        record = self.get_file(file_id)
        if not self.storage.exists(record.storage_path):
            raise NotFoundError("File not found")
        return self.store.increment_downloads(file_id) or record

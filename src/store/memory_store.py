"""Volatile in-process store.

Used on its own (STORE_BACKEND=memory, tests) and as the secondary of
FallbackStore. Everything held here is lost when the process exits.
"""
import threading
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type, TypeVar
from uuid import UUID

from pydantic import BaseModel

from src.core.errors import ConflictError, NotFoundError
from src.models.base import utcnow
from src.models.enums import OPEN_PAYMENT_STATUSES, PaymentStatus, PlanTier
from src.repositories.user_repo import QUOTA_TOLERANCE_MB
from src.schemas.records import BYTES_PER_MB, AccountRecord, FileRecord, PaymentRecord, StoreStats
from src.store.base import Store

RecordType = TypeVar("RecordType", bound=BaseModel)

ACCOUNT_DEFAULTS = {
    "plan": PlanTier.free,
    "storage_used": 0.0,
    "storage_limit": 100.0,
    "total_files": 0,
    "is_admin": False,
    "is_protected": False,
}
FILE_DEFAULTS = {
    "content_type": "application/octet-stream",
    "download_count": 0,
    "is_public": True,
}
PAYMENT_DEFAULTS = {
    "currency": "INR",
    "status": PaymentStatus.pending,
}


def newest_first(records: Iterable[RecordType]) -> List[RecordType]:
    # Reverse insertion order first so equal timestamps keep newest-first.
    return sorted(reversed(list(records)), key=lambda r: r.created_at, reverse=True)


class MemoryStore(Store):
    """Dictionary-backed store guarded by a single re-entrant lock."""

    def __init__(self):
        self._lock = threading.RLock()
        self._accounts: Dict[UUID, AccountRecord] = {}
        self._files: Dict[UUID, FileRecord] = {}
        self._payments: Dict[UUID, PaymentRecord] = {}

    @staticmethod
    def _build(model: Type[RecordType], defaults: Dict[str, Any], data: Dict[str, Any]) -> RecordType:
        now = utcnow()
        values = {**defaults, "created_at": now, "updated_at": now, **data}
        values.setdefault("id", uuid.uuid4())
        return model(**values)

    @staticmethod
    def _apply(record: RecordType, changes: Dict[str, Any]) -> RecordType:
        fields = {k: v for k, v in changes.items() if k in type(record).model_fields}
        return record.model_copy(update={**fields, "updated_at": utcnow()})

    # Mirroring (used by FallbackStore)

    def upsert(self, record: BaseModel) -> None:
        """Store a copy of a record read from another store."""
        with self._lock:
            if isinstance(record, AccountRecord):
                self._accounts[record.id] = record.model_copy()
            elif isinstance(record, FileRecord):
                self._files[record.id] = record.model_copy()
            elif isinstance(record, PaymentRecord):
                self._payments[record.id] = record.model_copy()

    def discard_file(self, file_id: UUID) -> None:
        with self._lock:
            self._files.pop(file_id, None)

    # Health

    def ping(self) -> None:
        return None

    def stats(self) -> StoreStats:
        with self._lock:
            completed = [p for p in self._payments.values() if p.status == PaymentStatus.completed]
            return StoreStats(
                total_users=len(self._accounts),
                total_files=len(self._files),
                completed_payments=len(completed),
                total_revenue=sum(p.amount for p in completed),
                total_storage_used=sum(a.storage_used for a in self._accounts.values()),
            )

    # Accounts

    def create_account(self, data: Dict[str, Any]) -> AccountRecord:
        with self._lock:
            if any(a.username == data.get("username") for a in self._accounts.values()):
                raise ConflictError("Username exists", code="duplicate_handle")
            record = self._build(AccountRecord, ACCOUNT_DEFAULTS, data)
            if record.id in self._accounts:
                raise ConflictError("Account id exists")
            self._accounts[record.id] = record
            return record.model_copy()

    def get_account(self, account_id: UUID) -> Optional[AccountRecord]:
        with self._lock:
            record = self._accounts.get(account_id)
            return record.model_copy() if record else None

    def get_account_by_username(self, username: str) -> Optional[AccountRecord]:
        with self._lock:
            for record in self._accounts.values():
                if record.username == username:
                    return record.model_copy()
            return None

    def get_protected_account(self) -> Optional[AccountRecord]:
        with self._lock:
            for record in self._accounts.values():
                if record.is_protected:
                    return record.model_copy()
            return None

    def list_accounts(self, limit: Optional[int] = None) -> List[AccountRecord]:
        with self._lock:
            records = newest_first(self._accounts.values())
            return [r.model_copy() for r in records[:limit]]

    def update_account(self, account_id: UUID, changes: Dict[str, Any]) -> Optional[AccountRecord]:
        with self._lock:
            record = self._accounts.get(account_id)
            if record is None:
                return None
            record = self._apply(record, changes)
            self._accounts[account_id] = record
            return record.model_copy()

    def reserve_storage(self, account_id: UUID, delta_mb: float) -> Optional[AccountRecord]:
        with self._lock:
            record = self._accounts.get(account_id)
            if record is None:
                raise NotFoundError("User not found")
            if record.storage_used + delta_mb > record.storage_limit + QUOTA_TOLERANCE_MB:
                return None
            return self.update_account(account_id, {
                "storage_used": record.storage_used + delta_mb,
                "total_files": record.total_files + 1,
            })

    def release_storage(self, account_id: UUID, delta_mb: float, files: int = 1) -> Optional[AccountRecord]:
        with self._lock:
            record = self._accounts.get(account_id)
            if record is None:
                return None
            return self.update_account(account_id, {
                "storage_used": max(0.0, record.storage_used - delta_mb),
                "total_files": max(0, record.total_files - files),
            })

    def delete_account(self, account_id: UUID) -> bool:
        with self._lock:
            if self._accounts.pop(account_id, None) is None:
                return False
            self._files = {k: f for k, f in self._files.items() if f.owner_id != account_id}
            self._payments = {k: p for k, p in self._payments.items() if p.owner_id != account_id}
            return True

    # Files

    def create_file(self, data: Dict[str, Any]) -> FileRecord:
        with self._lock:
            record = self._build(FileRecord, FILE_DEFAULTS, data)
            self._files[record.id] = record
            return record.model_copy()

    def get_file(self, file_id: UUID) -> Optional[FileRecord]:
        with self._lock:
            record = self._files.get(file_id)
            return record.model_copy() if record else None

    def list_files(self, owner_id: UUID) -> List[FileRecord]:
        with self._lock:
            owned = [f for f in self._files.values() if f.owner_id == owner_id]
            return [f.model_copy() for f in newest_first(owned)]

    def delete_file(self, file_id: UUID) -> Optional[FileRecord]:
        with self._lock:
            record = self._files.pop(file_id, None)
            if record is None:
                return None
            self.release_storage(record.owner_id, record.size_bytes / BYTES_PER_MB)
            return record.model_copy()

    def increment_downloads(self, file_id: UUID) -> Optional[FileRecord]:
        with self._lock:
            record = self._files.get(file_id)
            if record is None:
                return None
            record = record.model_copy(update={"download_count": record.download_count + 1})
            self._files[file_id] = record
            return record.model_copy()

    # Payments

    def create_payment(self, data: Dict[str, Any]) -> PaymentRecord:
        with self._lock:
            record = self._build(PaymentRecord, PAYMENT_DEFAULTS, data)
            self._payments[record.id] = record
            return record.model_copy()

    def get_payment(self, payment_id: UUID) -> Optional[PaymentRecord]:
        with self._lock:
            record = self._payments.get(payment_id)
            return record.model_copy() if record else None

    def list_payments(
        self,
        owner_id: Optional[UUID] = None,
        status: Optional[PaymentStatus] = None,
        limit: Optional[int] = None,
    ) -> List[PaymentRecord]:
        with self._lock:
            matches = [
                p for p in self._payments.values()
                if (owner_id is None or p.owner_id == owner_id)
                and (status is None or p.status == status)
            ]
            return [p.model_copy() for p in newest_first(matches)[:limit]]

    def transition_payment(
        self,
        payment_id: UUID,
        from_statuses: Iterable[PaymentStatus],
        changes: Dict[str, Any],
    ) -> Optional[PaymentRecord]:
        with self._lock:
            record = self._payments.get(payment_id)
            if record is None or record.status not in tuple(from_statuses):
                return None
            record = self._apply(record, changes)
            self._payments[payment_id] = record
            return record.model_copy()

    def complete_payment(
        self,
        payment_id: UUID,
        changes: Dict[str, Any],
        account_changes: Dict[str, Any],
    ) -> Optional[Tuple[PaymentRecord, AccountRecord]]:
        with self._lock:
            record = self._payments.get(payment_id)
            if record is None or record.status not in OPEN_PAYMENT_STATUSES:
                return None
            if record.owner_id not in self._accounts:
                raise NotFoundError("User not found")
            payment = self.transition_payment(
                payment_id, OPEN_PAYMENT_STATUSES, {**changes, "status": PaymentStatus.completed}
            )
            account = self.update_account(record.owner_id, account_changes)
            return payment, account

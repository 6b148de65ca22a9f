"""Primary/secondary store routing.

Every call goes to the persistent primary first. When it raises
StoreUnavailableError the same call runs once against the in-memory
secondary and the store is marked degraded. While degraded the primary is
skipped until the retry interval has passed, then probed again.

Records created or changed on the secondary during an outage are "volatile":
they are never copied back to the primary and vanish on restart. While the
process lives they stay pinned to the secondary, so by-id lookups, quota
counters and payment states keep reading the copy that saw the change, and
listings merge them over the primary's rows. An account that gains volatile
files or payments is pinned with them; its counters only add up there.
"""
import logging
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple
from uuid import UUID

from pydantic import BaseModel

from src.core.errors import ConflictError, StoreUnavailableError
from src.models.enums import PaymentStatus
from src.schemas.records import BYTES_PER_MB, AccountRecord, FileRecord, PaymentRecord, StoreStats
from src.store.base import Store
from src.store.memory_store import MemoryStore, newest_first

logger = logging.getLogger(__name__)


class FallbackStore(Store):
    """Store that degrades to an in-memory secondary when the primary is down."""

    def __init__(
        self,
        primary: Store,
        secondary: Optional[MemoryStore] = None,
        retry_interval: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.primary = primary
        self.secondary = secondary or MemoryStore()
        self.retry_interval = retry_interval
        self._clock = clock
        self._lock = threading.Lock()
        self._volatile: Set[UUID] = set()
        # Durable files deleted while degraded; the primary still holds their rows.
        self._deleted_files: Set[UUID] = set()
        self._degraded_at: Optional[float] = None

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    @property
    def degraded(self) -> bool:
        return self._degraded_at is not None

    @property
    def mode(self) -> str:
        return "degraded" if self.degraded else "primary"

    def is_volatile(self, record_id: Optional[UUID]) -> bool:
        return record_id is not None and record_id in self._volatile

    def _pin(self, *record_ids: Optional[UUID]) -> None:
        with self._lock:
            self._volatile.update(i for i in record_ids if i is not None)

    def _primary_due(self) -> bool:
        with self._lock:
            if self._degraded_at is None:
                return True
            return self._clock() - self._degraded_at >= self.retry_interval

    def _mark_degraded(self, exc: Exception) -> None:
        with self._lock:
            first = self._degraded_at is None
            self._degraded_at = self._clock()
        if first:
            logger.warning(
                f"Primary store unavailable ({exc}); serving from in-memory store. "
                "Reduced durability: writes made now are lost on restart."
            )

    def _mark_healthy(self) -> None:
        with self._lock:
            recovered = self._degraded_at is not None
            self._degraded_at = None
            volatile = len(self._volatile)
        if recovered:
            logger.info(f"Primary store recovered; {volatile} records remain in memory only")

    def _mirror(self, result: Any) -> None:
        if isinstance(result, BaseModel):
            self.secondary.upsert(result)
        elif isinstance(result, (list, tuple)):
            for item in result:
                self._mirror(item)

    def _route(self, name: str, *args, key: Optional[UUID] = None, **kwargs) -> Tuple[Any, bool]:
        """Run `name` on the primary, falling back to the secondary once.

        Returns the result and whether the primary served it.
        """
        if not self.is_volatile(key) and self._primary_due():
            try:
                result = getattr(self.primary, name)(*args, **kwargs)
            except StoreUnavailableError as exc:
                self._mark_degraded(exc)
            else:
                self._mark_healthy()
                self._mirror(result)
                return result, True

        return getattr(self.secondary, name)(*args, **kwargs), False

    def _call(self, name: str, *args, key: Optional[UUID] = None, **kwargs) -> Any:
        result, _ = self._route(name, *args, key=key, **kwargs)
        return result

    def _write(
        self, name: str, *args, key: Optional[UUID] = None, pin: Iterable[Optional[UUID]] = (), **kwargs
    ) -> Any:
        """Like `_call`, pinning `pin` to the secondary when it served the write."""
        result, durable = self._route(name, *args, key=key, **kwargs)
        if not durable:
            self._pin(*pin)
        return result

    def _merge(self, durable: Iterable[BaseModel], held: Iterable[BaseModel]) -> List[BaseModel]:
        """Primary rows overlaid with the secondary's volatile copies."""
        merged = {r.id: r for r in durable if r.id not in self._deleted_files}
        merged.update((r.id, r) for r in held if self.is_volatile(r.id))
        return newest_first(merged.values())

    def probe(self) -> bool:
        """Health check of the primary; updates the degraded flag."""
        try:
            self.primary.ping()
        except StoreUnavailableError as exc:
            self._mark_degraded(exc)
            return False
        self._mark_healthy()
        return True

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def ping(self) -> None:
        self._call("ping")

    def stats(self) -> StoreStats:
        return self._call("stats")

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def create_account(self, data: Dict[str, Any]) -> AccountRecord:
        existing = self.secondary.get_account_by_username(data.get("username"))
        if existing is not None and self.is_volatile(existing.id):
            raise ConflictError("Username exists", code="duplicate_handle")
        record, durable = self._route("create_account", data)
        if not durable:
            self._pin(record.id)
        return record

    def get_account(self, account_id: UUID) -> Optional[AccountRecord]:
        return self._call("get_account", account_id, key=account_id)

    def get_account_by_username(self, username: str) -> Optional[AccountRecord]:
        record = self._call("get_account_by_username", username)
        held = self.secondary.get_account_by_username(username)
        if held is not None and self.is_volatile(held.id):
            return held
        return record

    def get_protected_account(self) -> Optional[AccountRecord]:
        return self._call("get_protected_account")

    def list_accounts(self, limit: Optional[int] = None) -> List[AccountRecord]:
        records = self._call("list_accounts", limit)
        if self.degraded:
            return records
        return self._merge(records, self.secondary.list_accounts())[:limit]

    def update_account(self, account_id: UUID, changes: Dict[str, Any]) -> Optional[AccountRecord]:
        return self._write("update_account", account_id, changes, key=account_id, pin=[account_id])

    def reserve_storage(self, account_id: UUID, delta_mb: float) -> Optional[AccountRecord]:
        return self._write("reserve_storage", account_id, delta_mb, key=account_id, pin=[account_id])

    def release_storage(self, account_id: UUID, delta_mb: float, files: int = 1) -> Optional[AccountRecord]:
        return self._write("release_storage", account_id, delta_mb, files, key=account_id, pin=[account_id])

    def delete_account(self, account_id: UUID) -> bool:
        deleted = self._call("delete_account", account_id, key=account_id)
        # Drop the mirror copy and any volatile files/payments still held for it.
        mirrored = self.secondary.delete_account(account_id)
        with self._lock:
            self._volatile.discard(account_id)
        return deleted or mirrored

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def create_file(self, data: Dict[str, Any]) -> FileRecord:
        owner_id = data.get("owner_id")
        record, durable = self._route("create_file", data, key=owner_id)
        if not durable:
            self._pin(record.id, owner_id)
        return record

    def get_file(self, file_id: UUID) -> Optional[FileRecord]:
        if file_id in self._deleted_files:
            return None
        return self._call("get_file", file_id, key=file_id)

    def list_files(self, owner_id: UUID) -> List[FileRecord]:
        records = self._call("list_files", owner_id)
        if self.degraded:
            return records
        return self._merge(records, self.secondary.list_files(owner_id))

    def delete_file(self, file_id: UUID) -> Optional[FileRecord]:
        if file_id in self._deleted_files:
            return None
        removed, durable = self._route("delete_file", file_id, key=file_id)
        if durable:
            self.secondary.discard_file(file_id)
            if removed is not None and self.is_volatile(removed.owner_id):
                # The pinned owner's counters live on the secondary.
                self.secondary.release_storage(removed.owner_id, removed.size_bytes / BYTES_PER_MB)
        elif removed is not None:
            self._pin(removed.owner_id)
            if not self.is_volatile(file_id):
                with self._lock:
                    self._deleted_files.add(file_id)
        with self._lock:
            self._volatile.discard(file_id)
        return removed

    def increment_downloads(self, file_id: UUID) -> Optional[FileRecord]:
        return self._call("increment_downloads", file_id, key=file_id)

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    def create_payment(self, data: Dict[str, Any]) -> PaymentRecord:
        owner_id = data.get("owner_id")
        record, durable = self._route("create_payment", data, key=owner_id)
        if not durable:
            self._pin(record.id, owner_id)
        return record

    def get_payment(self, payment_id: UUID) -> Optional[PaymentRecord]:
        return self._call("get_payment", payment_id, key=payment_id)

    def list_payments(
        self,
        owner_id: Optional[UUID] = None,
        status: Optional[PaymentStatus] = None,
        limit: Optional[int] = None,
    ) -> List[PaymentRecord]:
        records = self._call("list_payments", owner_id, status, limit)
        if self.degraded:
            return records
        held = self.secondary.list_payments(owner_id)
        merged = self._merge(records, held)
        if status is not None:
            merged = [p for p in merged if p.status == status]
        return merged[:limit]

    def transition_payment(
        self,
        payment_id: UUID,
        from_statuses: Iterable[PaymentStatus],
        changes: Dict[str, Any],
    ) -> Optional[PaymentRecord]:
        record, durable = self._route(
            "transition_payment", payment_id, tuple(from_statuses), changes, key=payment_id
        )
        if not durable and record is not None:
            self._pin(record.id, record.owner_id)
        return record

    def complete_payment(
        self,
        payment_id: UUID,
        changes: Dict[str, Any],
        account_changes: Dict[str, Any],
    ) -> Optional[Tuple[PaymentRecord, AccountRecord]]:
        result, durable = self._route(
            "complete_payment", payment_id, changes, account_changes, key=payment_id
        )
        if not durable and result is not None:
            payment, account = result
            self._pin(payment.id, account.id)
        return result

"""Storage quota accounting."""
import logging
import threading
from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, Iterator
from uuid import UUID

from src.core.errors import FileTooLargeError, NotFoundError, QuotaExceededError
from src.core.plans import get_plan
from src.schemas.records import BYTES_PER_MB, AccountRecord
from src.store.base import Store

logger = logging.getLogger(__name__)


def bytes_to_mb(size_bytes: int) -> float:
    return size_bytes / BYTES_PER_MB


class QuotaAccountant:
    """
    Enforces per-plan file size ceilings and aggregate storage limits.

    Reservations go through the store's conditional update; `serialized`
    additionally funnels each account's reserve-and-record sequence through
    one lock so concurrent uploads by the same account run one at a time.
    """

    def __init__(self, store: Store):
        self.store = store
        self._guard = threading.Lock()
        self._locks: Dict[UUID, threading.Lock] = defaultdict(threading.Lock)

    @contextmanager
    def serialized(self, account_id: UUID) -> Iterator[None]:
        with self._guard:
            lock = self._locks[account_id]
        with lock:
            yield

    def check_file_size(self, account: AccountRecord, size_bytes: int) -> None:
        """
        Reject a single file larger than the plan allows.

        Raises:
            FileTooLargeError: If the file exceeds the plan's per-file ceiling
        """
        plan = get_plan(account.plan)
        if bytes_to_mb(size_bytes) > plan.max_file_mb:
            raise FileTooLargeError(
                f"File too large. Max size for {plan.tier.value} plan: {plan.max_file_mb:g}MB"
            )

    def reserve(self, account_id: UUID, delta_mb: float) -> AccountRecord:
        """
        Add `delta_mb` to the account's usage and count one more file.

        Raises:
            QuotaExceededError: If usage would go over the storage limit
            NotFoundError: If the account does not exist
        """
        updated = self.store.reserve_storage(account_id, delta_mb)
        if updated is None:
            account = self.store.get_account(account_id)
            if account is None:
                raise NotFoundError("User not found")
            logger.info(
                f"Quota refused for {account.username}: {delta_mb:.2f}MB requested, "
                f"{account.storage_remaining:.2f}MB left"
            )
            raise QuotaExceededError(
                f"Storage full! {account.storage_remaining:.2f}MB left. Upgrade plan."
            )
        return updated

    def release(self, account_id: UUID, delta_mb: float) -> AccountRecord:
        """Give back `delta_mb` and one file; both counters stop at zero."""
        updated = self.store.release_storage(account_id, delta_mb)
        if updated is None:
            raise NotFoundError("User not found")
        return updated

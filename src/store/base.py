"""Store interface shared by the persistent and in-memory implementations."""
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import UUID

from src.models.enums import PaymentStatus
from src.schemas.records import AccountRecord, FileRecord, PaymentRecord, StoreStats


class Store(ABC):
    """
    Data access for accounts, files and payments.

    Every method either completes as one unit or not at all. Implementations
    raise StoreUnavailableError when their backend cannot be reached and
    NotFoundError when an operation targets an account that does not exist.
    """

    # Health

    @abstractmethod
    def ping(self) -> None:
        """Raise StoreUnavailableError if the backend is unreachable."""

    @abstractmethod
    def stats(self) -> StoreStats:
        """Aggregate totals for the admin dashboard."""

    # Accounts

    @abstractmethod
    def create_account(self, data: Dict[str, Any]) -> AccountRecord:
        """Insert an account. Raises ConflictError for a duplicate username."""

    @abstractmethod
    def get_account(self, account_id: UUID) -> Optional[AccountRecord]:
        ...

    @abstractmethod
    def get_account_by_username(self, username: str) -> Optional[AccountRecord]:
        ...

    @abstractmethod
    def get_protected_account(self) -> Optional[AccountRecord]:
        ...

    @abstractmethod
    def list_accounts(self, limit: Optional[int] = None) -> List[AccountRecord]:
        """Accounts, newest first."""

    @abstractmethod
    def update_account(self, account_id: UUID, changes: Dict[str, Any]) -> Optional[AccountRecord]:
        ...

    @abstractmethod
    def reserve_storage(self, account_id: UUID, delta_mb: float) -> Optional[AccountRecord]:
        """
        Add `delta_mb` to storage_used and one file to total_files.

        Returns None, leaving the account untouched, when the result would
        exceed storage_limit.
        """

    @abstractmethod
    def release_storage(self, account_id: UUID, delta_mb: float, files: int = 1) -> Optional[AccountRecord]:
        """Subtract usage and file count, both floored at zero."""

    @abstractmethod
    def delete_account(self, account_id: UUID) -> bool:
        """Delete an account together with its files and payments."""

    # Files

    @abstractmethod
    def create_file(self, data: Dict[str, Any]) -> FileRecord:
        ...

    @abstractmethod
    def get_file(self, file_id: UUID) -> Optional[FileRecord]:
        ...

    @abstractmethod
    def list_files(self, owner_id: UUID) -> List[FileRecord]:
        """Files owned by an account, newest first."""

    @abstractmethod
    def delete_file(self, file_id: UUID) -> Optional[FileRecord]:
        """
        Remove a file record and release its size from the owner in the same
        transaction. Returns the removed record, or None if it did not exist.
        """

    @abstractmethod
    def increment_downloads(self, file_id: UUID) -> Optional[FileRecord]:
        ...

    # Payments

    @abstractmethod
    def create_payment(self, data: Dict[str, Any]) -> PaymentRecord:
        ...

    @abstractmethod
    def get_payment(self, payment_id: UUID) -> Optional[PaymentRecord]:
        ...

    @abstractmethod
    def list_payments(
        self,
        owner_id: Optional[UUID] = None,
        status: Optional[PaymentStatus] = None,
        limit: Optional[int] = None,
    ) -> List[PaymentRecord]:
        """Payments, newest first."""

    @abstractmethod
    def transition_payment(
        self,
        payment_id: UUID,
        from_statuses: Iterable[PaymentStatus],
        changes: Dict[str, Any],
    ) -> Optional[PaymentRecord]:
        """Apply `changes` only if the payment is in one of `from_statuses`."""

    @abstractmethod
    def complete_payment(
        self,
        payment_id: UUID,
        changes: Dict[str, Any],
        account_changes: Dict[str, Any],
    ) -> Optional[Tuple[PaymentRecord, AccountRecord]]:
        """
        Move an open payment to completed and apply `account_changes` to its
        owner as one unit.

        Returns None when the payment is missing or no longer open; in that
        case nothing is written.
        """

"""Persistent store backed by SQLAlchemy."""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from src.core.errors import ConflictError, NotFoundError, StoreUnavailableError
from src.db.base import Base
from src.models.enums import OPEN_PAYMENT_STATUSES, PaymentStatus
from src.repositories.file_repo import FileRepository
from src.repositories.payment_repo import PaymentRepository
from src.repositories.user_repo import UserRepository
from src.schemas.records import BYTES_PER_MB, AccountRecord, FileRecord, PaymentRecord, StoreStats
from src.store.base import Store

logger = logging.getLogger(__name__)


def _is_unavailable(exc: Exception) -> bool:
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


def _account(obj) -> Optional[AccountRecord]:
    return AccountRecord.model_validate(obj) if obj is not None else None


def _file(obj) -> Optional[FileRecord]:
    return FileRecord.model_validate(obj) if obj is not None else None


def _payment(obj) -> Optional[PaymentRecord]:
    return PaymentRecord.model_validate(obj) if obj is not None else None


class SqlStore(Store):
    """Store implementation on top of the relational database."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """One transaction per store call; connectivity errors become StoreUnavailableError."""
        db = self._session_factory()
        try:
            yield db
            db.commit()
        except Exception as exc:
            try:
                db.rollback()
            except SQLAlchemyError as rollback_exc:
                logger.debug(f"Rollback failed after store error: {rollback_exc}")
            if _is_unavailable(exc):
                raise StoreUnavailableError(f"Database unavailable: {exc.__class__.__name__}") from exc
            raise
        finally:
            db.close()

    # Health

    def create_schema(self) -> None:
        """Create missing tables. Deployments normally run the alembic migrations instead."""
        with self._session() as db:
            Base.metadata.create_all(bind=db.connection())

    def ping(self) -> None:
        with self._session() as db:
            db.execute(text("SELECT 1"))

    def stats(self) -> StoreStats:
        with self._session() as db:
            users = UserRepository(db)
            payments = PaymentRepository(db)
            completed, revenue = payments.completed_totals()
            return StoreStats(
                total_users=users.count(),
                total_files=FileRepository(db).count(),
                completed_payments=completed,
                total_revenue=revenue,
                total_storage_used=users.total_storage_used(),
            )

    # Accounts

    def create_account(self, data: Dict[str, Any]) -> AccountRecord:
        with self._session() as db:
            try:
                user = UserRepository(db).create(data)
            except IntegrityError as exc:
                raise ConflictError("Username exists", code="duplicate_handle") from exc
            return _account(user)

    def get_account(self, account_id: UUID) -> Optional[AccountRecord]:
        with self._session() as db:
            return _account(UserRepository(db).get(account_id))

    def get_account_by_username(self, username: str) -> Optional[AccountRecord]:
        with self._session() as db:
            return _account(UserRepository(db).get_by_username(username))

    def get_protected_account(self) -> Optional[AccountRecord]:
        with self._session() as db:
            return _account(UserRepository(db).get_protected())

    def list_accounts(self, limit: Optional[int] = None) -> List[AccountRecord]:
        with self._session() as db:
            return [_account(u) for u in UserRepository(db).get_multi(limit=limit)]

    def update_account(self, account_id: UUID, changes: Dict[str, Any]) -> Optional[AccountRecord]:
        with self._session() as db:
            return _account(UserRepository(db).update(account_id, changes))

    def reserve_storage(self, account_id: UUID, delta_mb: float) -> Optional[AccountRecord]:
        with self._session() as db:
            users = UserRepository(db)
            user = users.reserve_storage(account_id, delta_mb)
            if user is None and users.get(account_id) is None:
                raise NotFoundError("User not found")
            return _account(user)

    def release_storage(self, account_id: UUID, delta_mb: float, files: int = 1) -> Optional[AccountRecord]:
        with self._session() as db:
            return _account(UserRepository(db).release_storage(account_id, delta_mb, files))

    def delete_account(self, account_id: UUID) -> bool:
        with self._session() as db:
            users = UserRepository(db)
            if users.get(account_id) is None:
                return False
            files_removed = FileRepository(db).delete_by_owner(account_id)
            payments_removed = PaymentRepository(db).delete_by_owner(account_id)
            users.delete(account_id)
            logger.info(
                f"Deleted account {account_id} with {files_removed} files and {payments_removed} payments"
            )
            return True

    # Files

    def create_file(self, data: Dict[str, Any]) -> FileRecord:
        with self._session() as db:
            return _file(FileRepository(db).create(data))

    def get_file(self, file_id: UUID) -> Optional[FileRecord]:
        with self._session() as db:
            return _file(FileRepository(db).get(file_id))

    def list_files(self, owner_id: UUID) -> List[FileRecord]:
        with self._session() as db:
            return [_file(f) for f in FileRepository(db).get_by_owner(owner_id)]

    def delete_file(self, file_id: UUID) -> Optional[FileRecord]:
        with self._session() as db:
            files = FileRepository(db)
            hosted = files.get(file_id)
            if hosted is None:
                return None
            record = _file(hosted)
            files.delete(file_id)
            UserRepository(db).release_storage(record.owner_id, record.size_bytes / BYTES_PER_MB)
            return record

    def increment_downloads(self, file_id: UUID) -> Optional[FileRecord]:
        with self._session() as db:
            return _file(FileRepository(db).increment_downloads(file_id))

    # Payments

    def create_payment(self, data: Dict[str, Any]) -> PaymentRecord:
        with self._session() as db:
            return _payment(PaymentRepository(db).create(data))

    def get_payment(self, payment_id: UUID) -> Optional[PaymentRecord]:
        with self._session() as db:
            return _payment(PaymentRepository(db).get(payment_id))

    def list_payments(
        self,
        owner_id: Optional[UUID] = None,
        status: Optional[PaymentStatus] = None,
        limit: Optional[int] = None,
    ) -> List[PaymentRecord]:
        with self._session() as db:
            rows = PaymentRepository(db).list_payments(owner_id=owner_id, status=status, limit=limit)
            return [_payment(p) for p in rows]

    def transition_payment(
        self,
        payment_id: UUID,
        from_statuses: Iterable[PaymentStatus],
        changes: Dict[str, Any],
    ) -> Optional[PaymentRecord]:
        with self._session() as db:
            return _payment(PaymentRepository(db).transition(payment_id, from_statuses, changes))

    def complete_payment(
        self,
        payment_id: UUID,
        changes: Dict[str, Any],
        account_changes: Dict[str, Any],
    ) -> Optional[Tuple[PaymentRecord, AccountRecord]]:
        with self._session() as db:
            payment = PaymentRepository(db).transition(
                payment_id,
                OPEN_PAYMENT_STATUSES,
                {**changes, "status": PaymentStatus.completed},
            )
            if payment is None:
                return None
            user = UserRepository(db).update(payment.owner_id, account_changes)
            if user is None:
                raise NotFoundError("User not found")
            return _payment(payment), _account(user)

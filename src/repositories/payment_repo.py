"""Payment repository extending base repository."""
from sqlalchemy.orm import Session
from sqlalchemy import func, select, update
from typing import Optional, List, Dict, Any, Iterable
from uuid import UUID

from src.repositories.base import BaseRepository
from src.models.payment import Payment
from src.models.enums import PaymentStatus
from src.models.base import utcnow


class PaymentRepository(BaseRepository[Payment]):
    """Repository for payment ledger operations."""

    def __init__(self, db: Session):
        super().__init__(Payment, db)

    def list_payments(
        self,
        owner_id: Optional[UUID] = None,
        status: Optional[PaymentStatus] = None,
        limit: Optional[int] = None
    ) -> List[Payment]:
        filters: Dict[str, Any] = {}
        if owner_id is not None:
            filters['owner_id'] = owner_id
        if status is not None:
            filters['status'] = status
        return self.get_multi(limit=limit, filters=filters)

    def transition(
        self,
        payment_id: UUID,
        from_statuses: Iterable[PaymentStatus],
        changes: Dict[str, Any]
    ) -> Optional[Payment]:
        """
        Conditionally update a payment that is currently in one of `from_statuses`.

        Args:
            payment_id: Payment UUID
            from_statuses: Statuses the row must be in for the update to apply
            changes: Column values to set (usually including a new status)

        Returns:
            Updated payment, or None if the row was missing or not in an allowed status
        """
        stmt = (
            update(Payment)
            .where(Payment.id == payment_id, Payment.status.in_(list(from_statuses)))
            .values(**changes, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)
        if result.rowcount != 1:
            return None
        return self.get(payment_id, for_update=True)

    def delete_by_owner(self, owner_id: UUID) -> int:
        return self.delete_by_field('owner_id', owner_id)

    def completed_totals(self) -> tuple:
        """Return (count, revenue) over completed payments."""
        row = self.db.execute(
            select(func.count(Payment.id), func.coalesce(func.sum(Payment.amount), 0))
            .where(Payment.status == PaymentStatus.completed)
        ).one()
        return int(row[0] or 0), int(row[1] or 0)

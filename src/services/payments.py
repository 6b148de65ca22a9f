"""Plan upgrade workflow: payment intent, verification, plan activation.

State machine per payment:

    pending -> completed | failed | under_review
    under_review -> completed | failed

The pending/under_review -> completed transition is a conditional store
update and is the only place plan changes are applied to an account.
"""
import enum
import logging
from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from src.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from src.core.plans import PLAN_DURATION, get_plan, purchasable_tiers
from src.models.base import utcnow
from src.models.enums import OPEN_PAYMENT_STATUSES, PaymentStatus
from src.schemas.payment import PaymentIntent, PlanState
from src.schemas.records import AccountRecord, PaymentRecord
from src.store.base import Store

logger = logging.getLogger(__name__)


class VerificationOutcome(str, enum.Enum):
    approve = "approve"
    review = "review"
    reject = "reject"


class PaymentVerifier(ABC):
    """Decides what happens to a client-submitted UPI transaction id."""

    name = "verifier"

    @abstractmethod
    def check(self, payment: PaymentRecord, transaction_id: str) -> VerificationOutcome:
        ...


class SandboxVerifier(PaymentVerifier):
    """Trusts the client-supplied transaction id. For development and tests only."""

    name = "sandbox"

    def __init__(self):
        logger.warning("Sandbox payment verifier active: transaction ids are trusted without checking")

    def check(self, payment: PaymentRecord, transaction_id: str) -> VerificationOutcome:
        return VerificationOutcome.approve


class ManualReviewVerifier(PaymentVerifier):
    """Queues every submission for an administrator to confirm."""

    name = "manual"

    def check(self, payment: PaymentRecord, transaction_id: str) -> VerificationOutcome:
        return VerificationOutcome.review


def build_verifier(mode: str) -> PaymentVerifier:
    if mode == "sandbox":
        return SandboxVerifier()
    if mode == "manual":
        return ManualReviewVerifier()
    raise ValueError(f"Unknown payment verifier: {mode}")


class PlanUpgradeWorkflow:
    """Orchestrates payment intents and plan activation."""

    def __init__(self, store: Store, verifier: PaymentVerifier, upi_id: str):
        self.store = store
        self.verifier = verifier
        self.upi_id = upi_id

    def initiate(self, account_id: UUID, tier: str) -> PaymentIntent:
        """
        Create a pending payment for a paid tier.

        Raises:
            ValidationError: Unknown or non-purchasable tier
            ConflictError: Account is already on that tier
            NotFoundError: Unknown account
        """
        try:
            plan = get_plan(tier)
        except (KeyError, ValueError):
            raise ValidationError("Invalid plan", code="invalid_tier") from None
        if plan.tier not in purchasable_tiers():
            raise ValidationError("Invalid plan", code="invalid_tier")

        account = self.store.get_account(account_id)
        if account is None:
            raise NotFoundError("User not found")
        if account.plan == plan.tier:
            raise ConflictError("Already on this plan", code="already_on_tier")

        payment = self.store.create_payment({
            "owner_id": account.id,
            "plan": plan.tier,
            "amount": plan.price,
            "currency": "INR",
            "upi_id": self.upi_id,
            "status": PaymentStatus.pending,
        })
        logger.info(f"Payment {payment.id} initiated by {account.username} for {plan.tier.value}")
        return PaymentIntent(
            payment_id=payment.id,
            plan=plan.tier,
            amount=plan.price,
            upi_id=self.upi_id,
            message=f"Pay ₹{plan.price} via UPI",
        )

    def _owned_payment(self, account_id: UUID, payment_id: UUID) -> PaymentRecord:
        payment = self.store.get_payment(payment_id)
        if payment is None:
            raise NotFoundError("Payment not found")
        if payment.owner_id != account_id:
            raise ForbiddenError("Not authorized")
        return payment

    def _plan_state(self, payment: PaymentRecord, account: AccountRecord, already_active: bool, message: str) -> PlanState:
        return PlanState(
            payment_id=payment.id,
            status=payment.status,
            plan=account.plan,
            storage_limit=account.storage_limit,
            plan_expiry=account.plan_expiry,
            already_active=already_active,
            message=message,
        )

    def _settled_state(self, payment: PaymentRecord) -> PlanState:
        """Result for a payment that is no longer open."""
        if payment.status == PaymentStatus.completed:
            account = self.store.get_account(payment.owner_id)
            if account is None:
                raise NotFoundError("User not found")
            return self._plan_state(payment, account, True, "Payment already verified")
        raise ConflictError("Payment was rejected", code="payment_failed")

    def _complete(self, payment: PaymentRecord, transaction_id: str, verified_by: str) -> PlanState:
        """Exclusive completion gate; applies the plan exactly once."""
        plan = get_plan(payment.plan)
        now = utcnow()
        result = self.store.complete_payment(
            payment.id,
            {"transaction_id": transaction_id, "verified_at": now, "verified_by": verified_by},
            {
                "plan": plan.tier,
                "storage_limit": plan.storage_mb,
                "plan_expiry": now + PLAN_DURATION,
            },
        )
        if result is None:
            # Lost the race or the payment moved on; report its current state.
            current = self.store.get_payment(payment.id)
            if current is None:
                raise NotFoundError("Payment not found")
            return self._settled_state(current)

        completed, account = result
        logger.info(f"Payment {completed.id} completed; {account.username} now on {plan.tier.value}")
        return self._plan_state(
            completed, account, False, f"Payment verified! {plan.tier.value.upper()} Plan activated."
        )

    def verify(self, account_id: UUID, payment_id: UUID, transaction_id: str) -> PlanState:
        """
        Submit a UPI transaction id for a payment.

        Re-verifying a completed payment succeeds without changing anything.

        Raises:
            ValidationError: Empty transaction id
            NotFoundError: Unknown payment
            ForbiddenError: Payment belongs to another account
            ConflictError: Payment was rejected
        """
        transaction_id = (transaction_id or "").strip()
        if not transaction_id:
            raise ValidationError("Payment ID and Transaction ID required")

        payment = self._owned_payment(account_id, payment_id)
        if payment.status not in OPEN_PAYMENT_STATUSES:
            return self._settled_state(payment)

        outcome = self.verifier.check(payment, transaction_id)
        if outcome == VerificationOutcome.approve:
            return self._complete(payment, transaction_id, verified_by=self.verifier.name)

        if outcome == VerificationOutcome.reject:
            rejected = self.store.transition_payment(
                payment.id, OPEN_PAYMENT_STATUSES,
                {"status": PaymentStatus.failed, "transaction_id": transaction_id},
            )
            logger.info(f"Payment {payment.id} rejected by {self.verifier.name} verifier")
            if rejected is None:
                current = self.store.get_payment(payment.id) or payment
                return self._settled_state(current)
            raise ConflictError("Payment was rejected", code="payment_failed")

        reviewed = self.store.transition_payment(
            payment.id, OPEN_PAYMENT_STATUSES,
            {"status": PaymentStatus.under_review, "transaction_id": transaction_id},
        )
        if reviewed is None:
            current = self.store.get_payment(payment.id) or payment
            return self._settled_state(current)
        account = self.store.get_account(account_id)
        if account is None:
            raise NotFoundError("User not found")
        logger.info(f"Payment {payment.id} queued for manual review")
        return self._plan_state(reviewed, account, False, "Payment submitted for review")

    # Admin review

    def list_payments(
        self,
        status: Optional[PaymentStatus] = None,
        owner_id: Optional[UUID] = None,
        limit: Optional[int] = None,
    ) -> List[PaymentRecord]:
        return self.store.list_payments(owner_id=owner_id, status=status, limit=limit)

    def mark_under_review(self, payment_id: UUID, note: Optional[str] = None) -> PaymentRecord:
        changes = {"status": PaymentStatus.under_review}
        if note:
            changes["review_note"] = note
        updated = self.store.transition_payment(payment_id, (PaymentStatus.pending,), changes)
        if updated is None:
            self._require_payment(payment_id)
            raise ConflictError("Only pending payments can be put under review")
        return updated

    def approve(self, payment_id: UUID, admin_username: str) -> PlanState:
        """Admin confirmation; goes through the same completion gate as verify."""
        payment = self._require_payment(payment_id)
        if payment.status not in OPEN_PAYMENT_STATUSES:
            return self._settled_state(payment)
        if not payment.transaction_id:
            raise ValidationError("Payment has no transaction id to confirm")
        return self._complete(payment, payment.transaction_id, verified_by=admin_username)

    def reject(self, payment_id: UUID, admin_username: str, note: Optional[str] = None) -> PaymentRecord:
        changes = {"status": PaymentStatus.failed, "verified_by": admin_username}
        if note:
            changes["review_note"] = note
        updated = self.store.transition_payment(payment_id, OPEN_PAYMENT_STATUSES, changes)
        if updated is None:
            self._require_payment(payment_id)
            raise ConflictError("Payment is no longer open")
        logger.info(f"Payment {payment_id} rejected by {admin_username}")
        return updated

    def _require_payment(self, payment_id: UUID) -> PaymentRecord:
        payment = self.store.get_payment(payment_id)
        if payment is None:
            raise NotFoundError("Payment not found")
        return payment

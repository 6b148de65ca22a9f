"""Plan upgrade payment endpoints."""
from typing import List

from fastapi import APIRouter, Depends, status

from src.api.deps import get_current_user, get_upgrade_workflow
from src.schemas.payment import (
    InitiatePaymentRequest,
    PaymentIntent,
    PaymentResponse,
    PlanState,
    VerifyPaymentRequest,
)
from src.schemas.records import AccountRecord
from src.services.payments import PlanUpgradeWorkflow

router = APIRouter()


@router.post("/initiate", response_model=PaymentIntent, status_code=status.HTTP_201_CREATED)
def initiate_payment(
    request: InitiatePaymentRequest,
    current_user: AccountRecord = Depends(get_current_user),
    workflow: PlanUpgradeWorkflow = Depends(get_upgrade_workflow),
):
    """Create a pending payment and return the UPI details to pay with."""
    return workflow.initiate(current_user.id, request.plan)


@router.post("/verify", response_model=PlanState)
def verify_payment(
    request: VerifyPaymentRequest,
    current_user: AccountRecord = Depends(get_current_user),
    workflow: PlanUpgradeWorkflow = Depends(get_upgrade_workflow),
):
    """
    Submit the UPI transaction id for a payment.

    Depending on the configured verifier the plan is activated right away or
    the payment waits for an administrator.
    """
    return workflow.verify(current_user.id, request.payment_id, request.transaction_id)


@router.get("", response_model=List[PaymentResponse])
def list_my_payments(
    current_user: AccountRecord = Depends(get_current_user),
    workflow: PlanUpgradeWorkflow = Depends(get_upgrade_workflow),
):
    return workflow.list_payments(owner_id=current_user.id)

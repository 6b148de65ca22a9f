"""Administrator endpoints."""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.api.deps import get_account_service, get_current_admin, get_upgrade_workflow
from src.models.enums import PaymentStatus
from src.schemas.account import AdminStatsResponse, AdminUserUpdate, UserResponse
from src.schemas.payment import PaymentResponse, PlanState, ReviewRequest
from src.schemas.records import AccountRecord
from src.services.accounts import AccountService
from src.services.payments import PlanUpgradeWorkflow

router = APIRouter()


@router.get("/stats", response_model=AdminStatsResponse)
def get_stats(
    current_admin: AccountRecord = Depends(get_current_admin),
    accounts: AccountService = Depends(get_account_service),
):
    """Totals across the store plus the most recent accounts and payments."""
    return accounts.admin_stats()


@router.patch("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UUID,
    update: AdminUserUpdate,
    current_admin: AccountRecord = Depends(get_current_admin),
    accounts: AccountService = Depends(get_account_service),
):
    return accounts.admin_update_account(user_id, update)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: UUID,
    current_admin: AccountRecord = Depends(get_current_admin),
    accounts: AccountService = Depends(get_account_service),
):
    """Delete an account with its files and payments. The root administrator is refused."""
    accounts.admin_delete_account(user_id)


@router.get("/payments", response_model=List[PaymentResponse])
def list_payments(
    payment_status: Optional[PaymentStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=1000),
    current_admin: AccountRecord = Depends(get_current_admin),
    workflow: PlanUpgradeWorkflow = Depends(get_upgrade_workflow),
):
    return workflow.list_payments(status=payment_status, limit=limit)


@router.post("/payments/{payment_id}/review", response_model=PaymentResponse)
def review_payment(
    payment_id: UUID,
    request: ReviewRequest,
    current_admin: AccountRecord = Depends(get_current_admin),
    workflow: PlanUpgradeWorkflow = Depends(get_upgrade_workflow),
):
    """Hold a pending payment for manual checking."""
    return workflow.mark_under_review(payment_id, request.note)


@router.post("/payments/{payment_id}/approve", response_model=PlanState)
def approve_payment(
    payment_id: UUID,
    current_admin: AccountRecord = Depends(get_current_admin),
    workflow: PlanUpgradeWorkflow = Depends(get_upgrade_workflow),
):
    return workflow.approve(payment_id, current_admin.username)


@router.post("/payments/{payment_id}/reject", response_model=PaymentResponse)
def reject_payment(
    payment_id: UUID,
    request: ReviewRequest,
    current_admin: AccountRecord = Depends(get_current_admin),
    workflow: PlanUpgradeWorkflow = Depends(get_upgrade_workflow),
):
    return workflow.reject(payment_id, current_admin.username, request.note)

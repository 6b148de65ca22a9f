"""Dependencies for API endpoints."""
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.core.errors import NotFoundError
from src.core.security import decode_token
from src.schemas.records import AccountRecord
from src.services.accounts import AccountService
from src.services.files import FileService
from src.services.payments import PlanUpgradeWorkflow
from src.services.storage.local import LocalStorage
from src.store.base import Store

security = HTTPBearer(auto_error=False)


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_storage(request: Request) -> LocalStorage:
    return request.app.state.storage


def get_account_service(request: Request) -> AccountService:
    return request.app.state.accounts


def get_file_service(request: Request) -> FileService:
    return request.app.state.files


def get_upgrade_workflow(request: Request) -> PlanUpgradeWorkflow:
    return request.app.state.workflow


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    accounts: AccountService = Depends(get_account_service),
) -> AccountRecord:
    """Get current authenticated account from the bearer token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise credentials_exception

    try:
        account_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise credentials_exception from None

    try:
        return accounts.get_account(account_id)
    except NotFoundError:
        raise credentials_exception from None


def get_current_admin(current_user: AccountRecord = Depends(get_current_user)) -> AccountRecord:
    """Verify the account is an administrator."""
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return current_user

"""Authentication endpoints."""
from fastapi import APIRouter, Depends, status

from src.api.deps import get_account_service, get_current_user
from src.core.security import create_access_token
from src.schemas.account import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from src.schemas.records import AccountRecord
from src.services.accounts import AccountService

router = APIRouter()


def _token_response(account: AccountRecord) -> TokenResponse:
    token = create_access_token({"sub": str(account.id), "username": account.username})
    return TokenResponse(access_token=token, user=UserResponse.model_validate(account))


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(
    request: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """
    Create a free-plan account and sign it in.

    - Username must be unique
    - Free plan: 100MB storage, 30 days
    """
    account = accounts.register(request.username, request.password, request.email)
    return _token_response(account)


@router.post("/login", response_model=TokenResponse)
def login(
    request: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """Exchange username and password for a bearer token."""
    account = accounts.authenticate(request.username, request.password)
    return _token_response(account)


@router.get("/me", response_model=UserResponse)
def get_me(current_user: AccountRecord = Depends(get_current_user)):
    """Current account with its plan and storage counters."""
    return current_user

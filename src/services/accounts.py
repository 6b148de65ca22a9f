"""Account registration, authentication and administration."""
import logging
import sys
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from src.core.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    ProtectedAccountError,
    ValidationError,
)
from src.core.plans import PLAN_DURATION, get_plan
from src.core.security import generate_password, hash_password, verify_password
from src.models.base import utcnow
from src.models.enums import PlanTier
from src.schemas.account import AdminUserUpdate, RegisterRequest
from src.schemas.records import AccountRecord
from src.services.storage.local import LocalStorage, StorageError
from src.store.base import Store

logger = logging.getLogger(__name__)

RECENT_LIMIT = 10


class AccountService:
    """Handle account lifecycle operations."""

    def __init__(self, store: Store, storage: Optional[LocalStorage] = None):
        self.store = store
        self.storage = storage

    def register(self, username: str, password: str, email: str) -> AccountRecord:
        """
        Create a free-plan account.

        Raises:
            ValidationError: Malformed username, password or email
            ConflictError: Username already taken
        """
        try:
            request = RegisterRequest(username=username, password=password, email=email)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ()))
            raise ValidationError(f"Invalid {field}: {first.get('msg')}") from exc

        if self.store.get_account_by_username(request.username) is not None:
            raise ConflictError("Username exists", code="duplicate_handle")

        free = get_plan(PlanTier.free)
        account = self.store.create_account({
            "username": request.username,
            "hashed_password": hash_password(request.password),
            "email": str(request.email),
            "plan": PlanTier.free,
            "storage_used": 0.0,
            "storage_limit": free.storage_mb,
            "plan_expiry": utcnow() + PLAN_DURATION,
            "total_files": 0,
            "is_admin": False,
            "is_protected": False,
        })
        logger.info(f"Registered account {account.username} ({account.id})")
        return account

    def authenticate(self, username: str, password: str) -> AccountRecord:
        if not username or not password:
            raise ValidationError("Username and password required")

        account = self.store.get_account_by_username(username)
        if account is None or not verify_password(password, account.hashed_password):
            raise AuthError("Invalid credentials")
        return account

    def get_account(self, account_id: UUID) -> AccountRecord:
        account = self.store.get_account(account_id)
        if account is None:
            raise NotFoundError("User not found")
        return account

    def provision_root_admin(
        self,
        username: str,
        password: Optional[str],
        email: str,
        allow_generated: bool = True,
    ) -> AccountRecord:
        """
        Make sure the protected root administrator exists.

        The protected flag is only ever set here. If no password is configured
        and `allow_generated` is set, a random one is written once to stderr;
        it never reaches the log.

        Raises:
            ValidationError: No password configured and generation not allowed
        """
        existing = self.store.get_protected_account()
        if existing is not None:
            return existing

        existing = self.store.get_account_by_username(username)
        if existing is not None:
            account = self.store.update_account(existing.id, {"is_admin": True, "is_protected": True})
            logger.info(f"Marked existing account {username} as root administrator")
            return account

        if not password:
            if not allow_generated:
                raise ValidationError("ROOT_ADMIN_PASSWORD must be set to create the root administrator")
            password = generate_password()
            logger.warning(f"ROOT_ADMIN_PASSWORD not set; generated a password for {username} (see stderr)")
            print(f"Root administrator {username} password: {password}", file=sys.stderr)

        premium = get_plan(PlanTier.premium)
        account = self.store.create_account({
            "username": username,
            "hashed_password": hash_password(password),
            "email": email,
            "plan": PlanTier.premium,
            "storage_used": 0.0,
            "storage_limit": premium.storage_mb,
            "plan_expiry": utcnow() + PLAN_DURATION,
            "total_files": 0,
            "is_admin": True,
            "is_protected": True,
        })
        logger.info(f"Root administrator {username} created")
        return account

    def admin_update_account(self, target_id: UUID, update: AdminUserUpdate) -> AccountRecord:
        """
        Change plan, storage limit or admin flag of an account.

        A plan change sets that plan's ceiling and a fresh expiry unless an
        explicit storage limit is supplied. Limits below current usage are
        refused rather than truncating files.

        Raises:
            NotFoundError: Unknown account
            ProtectedAccountError: Removing admin rights from the root administrator
            ValidationError: Storage limit below current usage
        """
        target = self.get_account(target_id)

        if target.is_protected and update.is_admin is False:
            raise ProtectedAccountError("The root administrator cannot lose admin rights")

        changes: Dict[str, Any] = {}
        if update.plan is not None:
            changes["plan"] = update.plan
            changes["storage_limit"] = get_plan(update.plan).storage_mb
            changes["plan_expiry"] = utcnow() + PLAN_DURATION
        if update.storage_limit is not None:
            changes["storage_limit"] = update.storage_limit
        if update.is_admin is not None:
            changes["is_admin"] = update.is_admin

        if not changes:
            return target

        new_limit = changes.get("storage_limit", target.storage_limit)
        if new_limit < target.storage_used:
            raise ValidationError(
                f"Storage limit {new_limit:g}MB is below current usage {target.storage_used:.2f}MB"
            )

        updated = self.store.update_account(target_id, changes)
        if updated is None:
            raise NotFoundError("User not found")
        logger.info(f"Admin updated account {target.username}: {sorted(changes)}")
        return updated

    def admin_delete_account(self, target_id: UUID) -> None:
        """
        Delete an account, its files and payments.

        Raises:
            NotFoundError: Unknown account
            ProtectedAccountError: Target is the root administrator
        """
        target = self.get_account(target_id)
        if target.is_protected:
            raise ProtectedAccountError("The root administrator cannot be deleted")

        files = self.store.list_files(target_id)
        if not self.store.delete_account(target_id):
            raise NotFoundError("User not found")

        if self.storage is not None:
            for hosted in files:
                try:
                    self.storage.delete(hosted.storage_path)
                except StorageError as e:
                    logger.error(f"Orphaned upload left at {hosted.storage_path}: {e}")
        logger.info(f"Deleted account {target.username} and {len(files)} files")

    def admin_stats(self) -> Dict[str, Any]:
        stats = self.store.stats()
        return {
            **stats.model_dump(),
            "recent_users": self.store.list_accounts(limit=RECENT_LIMIT),
            "recent_payments": self.store.list_payments(limit=RECENT_LIMIT),
        }

import uuid
from pathlib import Path

import pytest

from src.core.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    ProtectedAccountError,
    ValidationError,
)
from src.models.enums import PaymentStatus, PlanTier
from src.schemas.account import AdminUserUpdate
from src.services.storage.local import StorageError


@pytest.fixture
def root_admin(accounts):
    return accounts.provision_root_admin("thedigamber", "root-pass", "root@example.com")


class TestRegistration:

    def test_register_creates_free_account(self, user):
        assert user.plan == PlanTier.free
        assert user.storage_limit == 100
        assert user.storage_used == 0
        assert user.total_files == 0
        assert user.is_admin is False
        assert user.is_protected is False
        assert user.hashed_password != "secret123"

    def test_duplicate_username(self, accounts, user):
        with pytest.raises(ConflictError) as exc_info:
            accounts.register("alice", "other-pass", "alice2@example.com")
        assert exc_info.value.code == "duplicate_handle"

    @pytest.mark.parametrize(
        "username,password,email",
        [
            ("a", "secret123", "a@example.com"),
            ("bad name", "secret123", "b@example.com"),
            ("carol", "", "c@example.com"),
            ("dave", "secret123", "not-an-email"),
        ],
    )
    def test_invalid_input(self, accounts, username, password, email):
        with pytest.raises(ValidationError):
            accounts.register(username, password, email)


class TestAuthentication:

    def test_authenticate(self, accounts, user):
        account = accounts.authenticate("alice", "secret123")
        assert account.id == user.id

    def test_wrong_password(self, accounts, user):
        with pytest.raises(AuthError):
            accounts.authenticate("alice", "wrong")

    def test_unknown_user(self, accounts):
        with pytest.raises(AuthError):
            accounts.authenticate("nobody", "secret123")

    def test_missing_credentials(self, accounts):
        with pytest.raises(ValidationError):
            accounts.authenticate("", "")


class TestRootAdmin:

    def test_provisioning_is_idempotent(self, accounts, store, root_admin):
        again = accounts.provision_root_admin("thedigamber", "root-pass", "root@example.com")

        assert again.id == root_admin.id
        assert root_admin.is_admin and root_admin.is_protected
        assert len([a for a in store.list_accounts() if a.is_protected]) == 1

    def test_existing_username_is_promoted(self, accounts):
        existing = accounts.register("thedigamber", "secret123", "d@example.com")

        root = accounts.provision_root_admin("thedigamber", None, "root@example.com")

        assert root.id == existing.id
        assert root.is_admin and root.is_protected

    def test_generated_password_when_none_configured(self, accounts, caplog, capsys):
        with caplog.at_level("WARNING"):
            root = accounts.provision_root_admin("thedigamber", None, "root@example.com")
        assert root.is_protected
        assert "ROOT_ADMIN_PASSWORD not set" in caplog.text

        printed = capsys.readouterr().err
        password = printed.strip().rsplit(" ", 1)[-1]
        assert "Root administrator thedigamber password:" in printed
        assert password not in caplog.text
        assert accounts.authenticate("thedigamber", password).id == root.id

    def test_password_required_when_generation_disallowed(self, accounts, store):
        with pytest.raises(ValidationError):
            accounts.provision_root_admin("thedigamber", None, "root@example.com", allow_generated=False)
        assert store.get_protected_account() is None

    def test_existing_root_needs_no_password(self, accounts, root_admin):
        again = accounts.provision_root_admin("thedigamber", None, "root@example.com", allow_generated=False)
        assert again.id == root_admin.id

    def test_cannot_be_demoted(self, accounts, store, root_admin):
        with pytest.raises(ProtectedAccountError):
            accounts.admin_update_account(root_admin.id, AdminUserUpdate(is_admin=False))
        assert store.get_account(root_admin.id).is_admin is True

    def test_cannot_be_deleted(self, accounts, store, root_admin):
        with pytest.raises(ProtectedAccountError):
            accounts.admin_delete_account(root_admin.id)
        assert store.get_account(root_admin.id) is not None

    def test_other_changes_are_allowed(self, accounts, root_admin):
        updated = accounts.admin_update_account(root_admin.id, AdminUserUpdate(storage_limit=20480))
        assert updated.storage_limit == 20480
        assert updated.is_admin is True


class TestAdminOperations:

    def test_plan_change_sets_ceiling(self, accounts, user):
        updated = accounts.admin_update_account(user.id, AdminUserUpdate(plan=PlanTier.basic))

        assert updated.plan == PlanTier.basic
        assert updated.storage_limit == 1024
        assert updated.plan_expiry > user.plan_expiry

    def test_explicit_limit_overrides_plan_ceiling(self, accounts, user):
        updated = accounts.admin_update_account(
            user.id, AdminUserUpdate(plan=PlanTier.basic, storage_limit=2048)
        )
        assert updated.storage_limit == 2048

    def test_limit_below_usage_is_refused(self, accounts, files, user, make_upload):
        files.upload_file(user.id, make_upload(user.id, 60))

        with pytest.raises(ValidationError):
            accounts.admin_update_account(user.id, AdminUserUpdate(storage_limit=50))

    def test_grant_admin(self, accounts, user):
        assert accounts.admin_update_account(user.id, AdminUserUpdate(is_admin=True)).is_admin

    def test_update_unknown_account(self, accounts):
        with pytest.raises(NotFoundError):
            accounts.admin_update_account(uuid.uuid4(), AdminUserUpdate(is_admin=True))

    def test_delete_cascades(self, accounts, files, workflow, store, user, make_upload):
        meta = make_upload(user.id, 5)
        uploaded = files.upload_file(user.id, meta)
        intent = workflow.initiate(user.id, "basic")

        accounts.admin_delete_account(user.id)

        assert store.get_account(user.id) is None
        assert store.get_file(uploaded.file.id) is None
        assert store.get_payment(intent.payment_id) is None
        assert not Path(meta.storage_path).exists()

    def test_delete_continues_past_undeletable_artifact(
        self, accounts, files, storage, store, user, make_upload, mocker, caplog
    ):
        stuck = make_upload(user.id, 1, name="stuck.bin")
        other = make_upload(user.id, 1, name="other.bin")
        files.upload_file(user.id, stuck)
        files.upload_file(user.id, other)
        real_delete = storage.delete

        def flaky_delete(path):
            if str(path) == stuck.storage_path:
                raise StorageError("Permission denied")
            return real_delete(path)

        mocker.patch.object(storage, "delete", side_effect=flaky_delete)

        with caplog.at_level("ERROR"):
            accounts.admin_delete_account(user.id)

        assert store.get_account(user.id) is None
        assert store.list_files(user.id) == []
        assert not Path(other.storage_path).exists()
        assert f"Orphaned upload left at {stuck.storage_path}" in caplog.text

    def test_stats(self, accounts, files, workflow, user, make_upload):
        files.upload_file(user.id, make_upload(user.id, 12))
        intent = workflow.initiate(user.id, "premium")
        workflow.verify(user.id, intent.payment_id, "TXN123")
        workflow.initiate(user.id, "basic")

        stats = accounts.admin_stats()

        assert stats["total_users"] == 1
        assert stats["total_files"] == 1
        assert stats["completed_payments"] == 1
        assert stats["total_revenue"] == 999
        assert stats["total_storage_used"] == pytest.approx(12.0)
        assert [a.id for a in stats["recent_users"]] == [user.id]
        assert len(stats["recent_payments"]) == 2
        assert {p.status for p in stats["recent_payments"]} == {PaymentStatus.completed, PaymentStatus.pending}

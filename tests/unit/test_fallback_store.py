"""Primary/secondary store behaviour during and after a database outage."""
import pytest

from src.core.errors import ConflictError, QuotaExceededError, StoreUnavailableError
from src.models.enums import PaymentStatus, PlanTier
from src.schemas.records import BYTES_PER_MB
from src.services.accounts import AccountService
from src.services.files import FileService
from src.services.payments import PlanUpgradeWorkflow, SandboxVerifier
from src.store import FallbackStore, MemoryStore, SqlStore


class FakeClock:

    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def primary(session_factory):
    return SqlStore(session_factory)


@pytest.fixture
def fallback(primary, clock):
    return FallbackStore(primary, MemoryStore(), retry_interval=30, clock=clock)


@pytest.fixture
def outage(primary, session_factory, broken_session_factory):
    """Toggle the primary database between reachable and unreachable."""
    class Outage:
        def start(self):
            primary._session_factory = broken_session_factory

        def end(self):
            primary._session_factory = session_factory

    return Outage()


def test_unreachable_database_raises_store_unavailable(broken_session_factory):
    store = SqlStore(broken_session_factory)
    with pytest.raises(StoreUnavailableError):
        store.ping()


def test_healthy_primary_is_authoritative(fallback, primary):
    account = AccountService(fallback).register("alice", "secret123", "alice@example.com")

    assert fallback.mode == "primary"
    assert primary.get_account(account.id) is not None
    assert not fallback.is_volatile(account.id)
    # primary results are mirrored for use during an outage
    assert fallback.secondary.get_account(account.id) is not None


def test_registration_during_outage(fallback, primary, outage):
    outage.start()

    account = AccountService(fallback).register("bob", "secret123", "bob@example.com")

    assert fallback.degraded
    assert fallback.mode == "degraded"
    assert fallback.is_volatile(account.id)
    assert fallback.get_account(account.id).username == "bob"
    assert AccountService(fallback).authenticate("bob", "secret123").id == account.id

    outage.end()
    assert primary.get_account(account.id) is None


def test_outage_scenario_upload_and_restart(fallback, primary, outage, storage, make_upload, session_factory, clock):
    outage.start()
    accounts = AccountService(fallback, storage)
    files = FileService(fallback, storage)
    account = accounts.register("carol", "secret123", "carol@example.com")

    result = files.upload_file(account.id, make_upload(account.id, 10))

    assert result.storage.used == pytest.approx(10.0)
    assert [f.id for f in files.list_files(account.id)] == [result.file.id]

    # A new process starts with an empty secondary: nothing written during the outage survives.
    outage.end()
    restarted = FallbackStore(SqlStore(session_factory), MemoryStore(), retry_interval=30, clock=clock)
    assert restarted.get_account(account.id) is None
    assert restarted.get_account_by_username("carol") is None
    assert restarted.get_file(result.file.id) is None


def test_primary_retried_after_interval(fallback, primary, outage, clock):
    accounts = AccountService(fallback)
    outage.start()
    volatile = accounts.register("dave", "secret123", "dave@example.com")
    assert fallback.degraded

    outage.end()
    clock.advance(10)
    # Still inside the retry interval: the primary is not consulted yet.
    early = accounts.register("erin", "secret123", "erin@example.com")
    assert fallback.is_volatile(early.id)

    clock.advance(30)
    durable = accounts.register("frank", "secret123", "frank@example.com")

    assert not fallback.degraded
    assert not fallback.is_volatile(durable.id)
    assert primary.get_account(durable.id) is not None
    # Volatile records stay reachable while the process lives.
    assert fallback.get_account(volatile.id).username == "dave"
    assert fallback.get_account_by_username("erin").id == early.id
    listed = {a.username for a in fallback.list_accounts()}
    assert {"dave", "erin", "frank"} <= listed


def test_volatile_username_cannot_be_taken_again(fallback, outage, clock):
    accounts = AccountService(fallback)
    outage.start()
    accounts.register("gina", "secret123", "gina@example.com")
    outage.end()
    clock.advance(60)

    with pytest.raises(ConflictError):
        accounts.register("gina", "other-pass", "gina2@example.com")


def test_mirrored_account_usable_during_outage(fallback, outage, storage, make_upload):
    accounts = AccountService(fallback, storage)
    files = FileService(fallback, storage)
    account = accounts.register("hank", "secret123", "hank@example.com")

    outage.start()
    result = files.upload_file(account.id, make_upload(account.id, 30))

    assert fallback.degraded
    assert result.storage.used == pytest.approx(30.0)
    assert fallback.is_volatile(result.file.id)


def test_plan_upgrade_during_outage(fallback, outage):
    accounts = AccountService(fallback)
    workflow = PlanUpgradeWorkflow(fallback, SandboxVerifier(), "thedigamber@fam")
    outage.start()
    account = accounts.register("ivy", "secret123", "ivy@example.com")

    intent = workflow.initiate(account.id, "basic")
    state = workflow.verify(account.id, intent.payment_id, "TXN55")

    assert state.plan == PlanTier.basic
    assert fallback.get_account(account.id).storage_limit == 1024


def test_probe_updates_mode(fallback, outage, clock):
    outage.start()
    assert fallback.probe() is False
    assert fallback.mode == "degraded"

    outage.end()
    assert fallback.probe() is True
    assert fallback.mode == "primary"


def test_delete_account_removes_mirror(fallback, primary):
    accounts = AccountService(fallback)
    account = accounts.register("jack", "secret123", "jack@example.com")

    accounts.admin_delete_account(account.id)

    assert primary.get_account(account.id) is None
    assert fallback.secondary.get_account(account.id) is None
    assert fallback.get_account(account.id) is None


def test_quota_counts_outage_uploads_after_recovery(fallback, outage, clock, storage, make_upload):
    accounts = AccountService(fallback, storage)
    files = FileService(fallback, storage)
    account = accounts.register("kate", "secret123", "kate@example.com")

    outage.start()
    files.upload_file(account.id, make_upload(account.id, 60))
    outage.end()
    clock.advance(60)

    with pytest.raises(QuotaExceededError):
        files.upload_file(account.id, make_upload(account.id, 60))
    files.upload_file(account.id, make_upload(account.id, 30))

    listed = files.list_files(account.id)
    current = fallback.get_account(account.id)
    assert not fallback.degraded
    assert sum(f.size_bytes for f in listed) / BYTES_PER_MB <= current.storage_limit
    assert current.storage_used == pytest.approx(90.0)
    assert current.total_files == len(listed) == 2


def test_payment_completed_during_outage_is_not_reapplied(fallback, outage, clock):
    accounts = AccountService(fallback)
    workflow = PlanUpgradeWorkflow(fallback, SandboxVerifier(), "thedigamber@fam")
    account = accounts.register("liam", "secret123", "liam@example.com")
    intent = workflow.initiate(account.id, "premium")

    outage.start()
    first = workflow.verify(account.id, intent.payment_id, "TXN123")
    outage.end()
    clock.advance(60)
    again = workflow.verify(account.id, intent.payment_id, "TXN123")

    assert first.already_active is False
    assert again.already_active is True
    assert again.plan_expiry == first.plan_expiry
    assert fallback.get_payment(intent.payment_id).status == PaymentStatus.completed
    assert fallback.get_account(account.id).plan == PlanTier.premium
    completed = fallback.list_payments(owner_id=account.id, status=PaymentStatus.completed)
    assert [p.id for p in completed] == [intent.payment_id]


def test_file_deleted_during_outage_stays_deleted(fallback, outage, clock, storage, make_upload):
    accounts = AccountService(fallback, storage)
    files = FileService(fallback, storage)
    account = accounts.register("mona", "secret123", "mona@example.com")
    uploaded = files.upload_file(account.id, make_upload(account.id, 10))

    outage.start()
    summary = files.delete_file(account.id, uploaded.file.id)
    outage.end()
    clock.advance(60)

    assert summary.used == pytest.approx(0.0)
    assert fallback.get_file(uploaded.file.id) is None
    assert files.list_files(account.id) == []
    assert fallback.get_account(account.id).storage_used == pytest.approx(0.0)

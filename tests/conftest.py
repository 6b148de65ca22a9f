"""
Shared test configuration.

Settings are read when `src.app.config` is first imported, so the test
environment is set up here before anything from `src` is loaded.
"""
import os
import tempfile

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("PAYMENT_VERIFIER", "sandbox")
os.environ.setdefault("ROOT_ADMIN_PASSWORD", "root-pass")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="hosting-uploads-"))

import pytest  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from src.db.base import Base, create_db_engine, create_session_factory  # noqa: E402
from src.schemas.file import FileMeta  # noqa: E402
from src.schemas.records import BYTES_PER_MB  # noqa: E402
from src.services.accounts import AccountService  # noqa: E402
from src.services.files import FileService  # noqa: E402
from src.services.payments import PlanUpgradeWorkflow, SandboxVerifier  # noqa: E402
from src.services.quota import QuotaAccountant  # noqa: E402
from src.services.storage.local import LocalStorage  # noqa: E402
from src.store import MemoryStore, SqlStore  # noqa: E402

MB = BYTES_PER_MB


@pytest.fixture
def session_factory():
    """Fresh in-memory SQLite database with all tables."""
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def broken_session_factory(tmp_path):
    """Session factory pointing at a database file that cannot be opened."""
    engine = create_db_engine(f"sqlite:///{tmp_path}/missing-dir/hosting.db")
    yield sessionmaker(bind=engine)
    engine.dispose()


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def sql_store(session_factory):
    return SqlStore(session_factory)


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Every service test runs against both store implementations."""
    if request.param == "memory":
        return MemoryStore()
    return request.getfixturevalue("sql_store")


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "uploads", "http://testserver")


@pytest.fixture
def accounts(store, storage):
    return AccountService(store, storage)


@pytest.fixture
def quota(store):
    return QuotaAccountant(store)


@pytest.fixture
def files(store, storage, quota):
    return FileService(store, storage, quota)


@pytest.fixture
def workflow(store):
    return PlanUpgradeWorkflow(store, SandboxVerifier(), "thedigamber@fam")


@pytest.fixture
def user(accounts):
    return accounts.register("alice", "secret123", "alice@example.com")


@pytest.fixture
def make_upload(storage):
    """
    Write a small artifact to disk and describe it as `size_mb` large.

    Quota accounting only looks at the declared size, so tests can model
    large files without writing them.
    """
    def _make(owner_id, size_mb: float, name: str = "data.bin") -> FileMeta:
        stored_name = storage.generate_stored_name(name)
        path = storage.path_for(owner_id, stored_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"x" * 16)
        return FileMeta(
            original_name=name,
            stored_name=stored_name,
            size_bytes=int(size_mb * MB),
            content_type="application/octet-stream",
            storage_path=str(path),
        )

    return _make

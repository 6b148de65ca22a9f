"""
Integration test configuration
"""
import pytest
from fastapi.testclient import TestClient

from src.app.config import Settings
from src.app.main import create_application
from src.store import FallbackStore, MemoryStore, SqlStore

ROOT_PASSWORD = "root-pass"


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        ENVIRONMENT="test",
        DATABASE_URL="sqlite://",
        UPLOAD_DIR=str(tmp_path / "uploads"),
        PUBLIC_BASE_URL="http://testserver",
        PAYMENT_VERIFIER="sandbox",
        ROOT_ADMIN_USERNAME="thedigamber",
        ROOT_ADMIN_PASSWORD=ROOT_PASSWORD,
    )


@pytest.fixture
def app_store(session_factory):
    return FallbackStore(SqlStore(session_factory), MemoryStore())


@pytest.fixture
def app(test_settings, app_store):
    return create_application(test_settings, store=app_store)


@pytest.fixture
def client(app):
    """FastAPI test client; the context manager runs startup (schema, root admin)."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(client):
    def _login(username, password):
        response = client.post("/api/v1/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login


@pytest.fixture
def register(client):
    def _register(username="alice", password="secret123", email=None):
        response = client.post(
            "/api/v1/auth/register",
            json={"username": username, "password": password, "email": email or f"{username}@example.com"},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], {"Authorization": f"Bearer {body['access_token']}"}

    return _register


@pytest.fixture
def admin_headers(login):
    return login("thedigamber", ROOT_PASSWORD)

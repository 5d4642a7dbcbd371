"""
Pytest fixtures for GateKeeper tests.

Provides an in-memory database with the demo directory seeded, the service
layer wired over it, and a test client with per-role auth headers.
"""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from gatekeeper.cli import seed_directory
from gatekeeper.config import Config
from gatekeeper.database import DatabaseManager
from gatekeeper.main import create_app
from gatekeeper.services import (
    AccessControlService,
    AuthService,
    CredentialVerifier,
    SyncService,
    TokenService,
    UserService,
)
from gatekeeper.store import SqlDirectoryStore

SEED_PASSWORD = "password1"


@pytest.fixture
def test_config():
    """Settings for an isolated, in-memory instance."""
    settings = Config()
    settings.DB_URL = "sqlite://"
    settings.ENVIRONMENT = "testing"
    settings.JWT_SECRET = "test-secret-key"
    settings.RATE_LIMIT_ENABLED = False
    settings.LOG_LEVEL = "WARNING"
    settings.ALLOWED_ORIGINS = ["http://localhost:5173"]
    return settings


@pytest.fixture
def db(test_config):
    """Fresh schema for every test."""
    manager = DatabaseManager(test_config)
    manager.init_schema()
    yield manager
    manager.drop_schema()
    manager.dispose()


@pytest.fixture
def store(db):
    return SqlDirectoryStore(db)


@pytest.fixture
def credentials():
    return CredentialVerifier(min_length=8)


@pytest.fixture
def seeded_store(store, credentials):
    """
    Checkpoints CP-EAST-MAIN, CP-WEST-GATE, CP-NORTH-01, CP-SOUTH-01 and users:
    admin, supervisor_john (manages op_east), op_east, op_west.
    """
    seed_directory(store, credentials, SEED_PASSWORD)
    return store


# ---------- domain objects ----------

@pytest.fixture
def admin(seeded_store):
    return seeded_store.get_user("user-admin")


@pytest.fixture
def supervisor(seeded_store):
    return seeded_store.get_user("user-supervisor-john")


@pytest.fixture
def op_east(seeded_store):
    return seeded_store.get_user("user-op-east")


@pytest.fixture
def op_west(seeded_store):
    return seeded_store.get_user("user-op-west")


@pytest.fixture
def make_entry():
    """Build a raw entry dict as a client would push it."""
    def _make(record_id, logging_user_id, checkpoint_id="CP-EAST-MAIN", **overrides):
        raw = {
            "record_id": record_id,
            "checkpoint_id": checkpoint_id,
            "entry_type": "PERSONNEL",
            "logging_user_id": logging_user_id,
            "client_timestamp": "2024-05-01T10:00:00Z",
            "payload": {"name": "Jane Doe", "badge": "B-100"},
        }
        raw.update(overrides)
        return raw
    return _make


# ---------- services ----------

@pytest.fixture
def tokens(test_config):
    return TokenService(
        secret_key=test_config.JWT_SECRET,
        access_ttl=timedelta(minutes=30),
        refresh_ttl=timedelta(days=7),
    )


@pytest.fixture
def access(seeded_store):
    return AccessControlService(seeded_store)


@pytest.fixture
def sync_service(seeded_store, access):
    return SyncService(seeded_store, access)


@pytest.fixture
def user_service(seeded_store, access, credentials):
    return UserService(seeded_store, access, credentials)


@pytest.fixture
def auth_service(seeded_store, credentials, tokens):
    return AuthService(seeded_store, credentials, tokens)


# ---------- HTTP ----------

@pytest.fixture
def app(test_config, seeded_store):
    return create_app(test_config, store=seeded_store)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def get_auth_token(client, username: str, password: str = SEED_PASSWORD) -> str:
    """Helper to get an access token for a user."""
    response = client.post("/api/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client):
    return auth_headers(get_auth_token(client, "admin"))


@pytest.fixture
def supervisor_headers(client):
    return auth_headers(get_auth_token(client, "supervisor_john"))


@pytest.fixture
def op_east_headers(client):
    return auth_headers(get_auth_token(client, "op_east"))


@pytest.fixture
def op_west_headers(client):
    return auth_headers(get_auth_token(client, "op_west"))

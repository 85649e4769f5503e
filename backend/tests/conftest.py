from __future__ import annotations

import os
import tempfile

# Set test environment BEFORE importing app modules.
# app.db creates the engine at module level using get_settings().db_url,
# so we must override the env vars before any app imports.
_test_tmp = tempfile.mkdtemp(prefix="wellness-test-")
os.environ.setdefault("DATA_DIR", os.path.join(_test_tmp, "data"))
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("APP_SECRET", "test-app-secret-for-integration-tests-only")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from app.db import get_session
from app.dependencies import get_current_user_id
from app.main import app as fastapi_app
from app.models.user import User
from app.services.encryption import ContentCipher
from app.utils.crypto import hash_password


# ── Database fixtures ─────────────────────────────────────────────────


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite engine for testing.

    Uses StaticPool so every connection shares the same in-memory database.
    Recreates tables per test for full isolation.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(name="session")
def session_fixture(engine):
    """Provide a fresh session per test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="user")
def user_fixture(session) -> User:
    user = User(
        email="journal-owner@example.com",
        name="Journal Owner",
        password_hash=hash_password("Correct-Horse-1"),
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


# ── HTTP client fixtures ──────────────────────────────────────────────


@pytest.fixture(name="client")
def client_fixture(session, user):
    """FastAPI TestClient with overridden DB session and a logged-in user."""

    def _get_session_override():
        yield session

    def _current_user_override() -> str:
        return user.id

    fastapi_app.dependency_overrides[get_session] = _get_session_override
    fastapi_app.dependency_overrides[get_current_user_id] = _current_user_override
    with TestClient(fastapi_app) as client:
        yield client
    fastapi_app.dependency_overrides.clear()


@pytest.fixture(name="client_no_auth")
def client_no_auth_fixture(session):
    """TestClient with DB override but NO auth override, for testing 401s."""

    def _get_session_override():
        yield session

    fastapi_app.dependency_overrides[get_session] = _get_session_override
    with TestClient(fastapi_app) as tc:
        yield tc
    fastapi_app.dependency_overrides.clear()


# ── Encryption fixtures ───────────────────────────────────────────────


@pytest.fixture(name="master_secret")
def master_secret_fixture() -> str:
    """Fixed master secret for cipher unit tests."""
    return "unit-test-master-secret-0123456789abcdef"


@pytest.fixture(name="cipher")
def cipher_fixture(master_secret: str) -> ContentCipher:
    """ContentCipher with a fixed test secret."""
    return ContentCipher(master_secret)

"""Pytest configuration and fixtures for EcoConsole Core tests.

This module provides fixtures for:
- Database: SQLite in-memory with working SAVEPOINT support
- HTTP client: AsyncClient for FastAPI testing
- Mocks: a fake identity provider and httpx mocks for external services
"""

import uuid
from collections.abc import AsyncGenerator, Generator
from typing import Any, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from ecoconsole_core.config import Settings
from ecoconsole_core.domain.models import Base
from ecoconsole_core.infrastructure import IdentityProviderError, IdentityUser


ADMIN_SECRET = "test-admin-secret"


# -----------------------------------------------------------------------------
# Test Settings
# -----------------------------------------------------------------------------


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with safe defaults."""
    return Settings(
        database_url="sqlite+pysqlite:///:memory:",
        supabase_url="http://auth.test",
        supabase_service_role_key="test-service-role-key",
        site_url="https://console.test",
        admin_secret=ADMIN_SECRET,
        gemini_api_key=None,
        log_json=False,
    )


# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def sync_engine():
    """Create a synchronous SQLite in-memory engine for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy
    # emit BEGIN itself instead. Also enable foreign key support.
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)

    yield engine

    # Cleanup
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def sync_session_factory(sync_engine) -> sessionmaker[Session]:
    """Create a synchronous session factory."""
    return sessionmaker(
        bind=sync_engine,
        autocommit=False,
        autoflush=False,
    )


@pytest.fixture
def db_session(sync_session_factory) -> Generator[Session, None, None]:
    """Create a synchronous database session for testing."""
    session = sync_session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# -----------------------------------------------------------------------------
# Identity Provider Fake
# -----------------------------------------------------------------------------


class FakeIdentityProvider:
    """In-memory stand-in for ``IdentityProviderClient``."""

    def __init__(self):
        self.sessions: dict[str, IdentityUser] = {}
        self.invites: list[dict[str, Any]] = []
        self.invite_error: Optional[IdentityProviderError] = None
        self._invited_ids: dict[str, str] = {}

    def add_session(self, token: str, user_id: str, email: Optional[str] = None) -> IdentityUser:
        user = IdentityUser(id=user_id, email=email)
        self.sessions[token] = user
        return user

    def user_id_for(self, email: str) -> str:
        """ID the fake hands out for an invited email (stable across resends)."""
        return self._invited_ids.setdefault(email, str(uuid.uuid4()))

    async def get_user(self, access_token: str) -> IdentityUser:
        user = self.sessions.get(access_token)
        if user is None:
            raise IdentityProviderError("invalid JWT", status_code=401)
        return user

    async def invite_user_by_email(
        self,
        email: str,
        data: Optional[dict[str, Any]] = None,
        redirect_to: Optional[str] = None,
    ) -> IdentityUser:
        if self.invite_error is not None:
            raise self.invite_error
        self.invites.append({"email": email, "data": data, "redirect_to": redirect_to})
        return IdentityUser(id=self.user_id_for(email), email=email, user_metadata=data or {})


@pytest.fixture
def identity_provider() -> FakeIdentityProvider:
    """Fake identity provider shared by the app and the test."""
    return FakeIdentityProvider()


# -----------------------------------------------------------------------------
# FastAPI Test Client Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def test_app(test_settings, db_session, identity_provider) -> FastAPI:
    """Create a FastAPI test application with test settings and DB override.

    Requests share the test's session, so a test sees exactly what a request
    committed (or rolled back).
    """
    from ecoconsole_core.api.deps import get_db, get_identity_provider
    from ecoconsole_core.config import get_settings
    from ecoconsole_core.main import app

    app.state.settings = test_settings

    def override_get_db():
        try:
            yield db_session
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider

    yield app

    # Clean up overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def admin_params() -> dict[str, str]:
    """Query parameters that pass the admin gate."""
    return {"secret": ADMIN_SECRET}


# -----------------------------------------------------------------------------
# Mock Fixtures for External Services
# -----------------------------------------------------------------------------


@pytest.fixture
def mock_httpx_client() -> Generator[AsyncMock, None, None]:
    """Mock httpx.AsyncClient for testing external HTTP calls."""
    with patch("httpx.AsyncClient") as mock:
        mock_instance = AsyncMock()
        mock.return_value.__aenter__.return_value = mock_instance
        mock.return_value.__aexit__.return_value = None

        # Default response
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = {}
        mock_response.text = ""
        mock_instance.get.return_value = mock_response
        mock_instance.post.return_value = mock_response

        yield mock_instance


# -----------------------------------------------------------------------------
# Cleanup Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Reset the settings cache before each test."""
    from ecoconsole_core.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

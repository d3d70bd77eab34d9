"""
tests/conftest.py -- Shared test fixtures for LoginKeep.

This module provides:
  - FakeClock: injectable time source for remember-entry expiry tests
  - user_store / remember_store / sessions / service: isolated core wiring
  - alice: a seeded user (salt "s1", password "secret")
  - api_client: TestClient over the real app with a patched lifespan

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the credential store because TestClient and the concurrency tests run
work in other threads. Plain :memory: DBs are per-connection and would
present a blank schema to each worker thread.

DEBUG and PASSWORD_KDF_ROUNDS must be set before any auth module import:
get_settings() needs DEBUG to auto-generate SECRET_KEY, and auth.tokens
computes its timing dummy hash at import time.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: Set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("PASSWORD_KDF_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import UserRecord
from auth.service import AuthService
from auth.sessions import SessionIssuer
from auth.store import UserStore
from auth.tokens import hash_password
from cache.store import RememberStore

TEST_SECRET = "test-secret-key-that-is-at-least-32-chars"


class FakeClock:
    """Callable clock for RememberStore that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _shared_memory_url(name: str) -> str:
    return f"sqlite:///file:{name}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    store = UserStore(db_url=_shared_memory_url("test_auth"))
    yield store
    store.close()


@pytest.fixture
def remember_store(clock: FakeClock) -> Generator[RememberStore, None, None]:
    store = RememberStore(":memory:", clock=clock)
    yield store
    store.close()


@pytest.fixture
def sessions() -> SessionIssuer:
    return SessionIssuer(secret_key=TEST_SECRET, expire_seconds=3600)


@pytest.fixture
def service(user_store: UserStore, remember_store: RememberStore, sessions: SessionIssuer) -> AuthService:
    return AuthService(user_store, remember_store, sessions, remember_key_prefix="test:remember:")


@pytest.fixture
def alice(user_store: UserStore) -> UserRecord:
    """User "alice" with salt "s1" and stored hash of "secret"."""
    user_store.create_user("alice", hash_password("secret", "s1"), "s1")
    return user_store.find_by_username("alice")


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore, remember_store: RememberStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the configured ones.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.remember_store = remember_store
        app.state.auth_service = AuthService(
            user_store,
            remember_store,
            SessionIssuer(secret_key=TEST_SECRET, expire_seconds=3600),
            remember_key_prefix="test:remember:",
        )
        app.state.purge_task = None
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, int], None, None]:
    """Yield (client, user_id) for API integration tests.

    The fixture creates a user with username="apiuser", password="apipass123".
    base_url uses localhost so TrustedHostMiddleware accepts the requests.
    """
    user_store = UserStore(db_url=_shared_memory_url("test_api"))
    remember_store = RememberStore(":memory:")
    uid = user_store.create_user("apiuser", hash_password("apipass123", "api-salt"), "api-salt")

    app.router.lifespan_context = _patch_lifespan(user_store, remember_store)

    with TestClient(app, base_url="http://localhost", raise_server_exceptions=True) as client:
        yield client, uid

    remember_store.close()
    user_store.close()

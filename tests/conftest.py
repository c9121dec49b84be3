"""
tests/conftest.py -- Shared fixtures for the MediChain identity tests.

This module provides:
  - store / tokens / identity: unit-level fixtures over an in-memory UserStore
  - make_registration: factory for RegistrationRequest with sensible defaults
  - api_client: TestClient over the real app with a patched lifespan

Named shared-memory SQLite URIs (not plain :memory:) back the API fixture
because TestClient runs sync route handlers in a thread pool. Plain :memory:
databases are per-connection and would show each worker thread an empty
schema. Each fixture instance gets its own name so modules never share rows.

DEBUG, BCRYPT_ROUNDS and LOGIN_RATE_LIMIT must be set before any auth/core
import: get_settings() is cached on first use, and the login rate limit is
read when api/routes/users.py is imported. The limiter counters are reset
before every test, so no single test may log in more than five times
unless it is checking the limit itself.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from datetime import date

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOGIN_RATE_LIMIT", "5/minute")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import app
from auth.models import RegistrationRequest, UserRole
from auth.service import IdentityService
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import AccessPolicy

TEST_SECRET = "test-secret-key-that-is-at-least-32-chars"
TEST_TTL = 24 * 60 * 60

# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(TEST_SECRET, TEST_TTL)


@pytest.fixture
def identity(store: UserStore, tokens: TokenService) -> IdentityService:
    return IdentityService(store, tokens, bcrypt_rounds=4)


@pytest.fixture
def make_registration() -> Callable[..., RegistrationRequest]:
    """Return a factory: make_registration(username="bob", mail_id="bob@x.com", ...)."""

    def _make(**overrides) -> RegistrationRequest:
        fields = {
            "username": "alice",
            "first_name": "Alice",
            "last_name": "Moreau",
            "mail_id": "alice@x.com",
            "phone": "+15550100",
            "dob": date(1990, 5, 17),
            "password": "P@ss1",
            "confirm_password": "P@ss1",
            "role": UserRole.PHARMACY,
        }
        fields.update(overrides)
        return RegistrationRequest(**fields)

    return _make


# ---------------------------------------------------------------------------
# API fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    limiter.reset()
    yield


def _patch_lifespan(store: UserStore, identity: IdentityService):
    """Return a lifespan that wires the test identity stack into app.state.

    The store is closed by the fixture, not here, so a second TestClient over
    the same stack (e.g. with raise_server_exceptions=False) can be opened.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = store
        app.state.identity = identity
        app.state.access_policy = AccessPolicy.permissive
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, IdentityService], None, None]:
    """Yield (client, identity) for HTTP integration tests.

    The client drives the real FastAPI app and route handlers; only the
    lifespan is replaced so that requests hit an isolated in-memory store.
    """
    url = f"sqlite:///file:test_identity_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    store = UserStore(url)
    identity = IdentityService(store, TokenService(TEST_SECRET, TEST_TTL), bcrypt_rounds=4)

    app.router.lifespan_context = _patch_lifespan(store, identity)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, identity

    store.close()

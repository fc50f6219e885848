"""Pytest configuration and shared fixtures.

Routers run against in-memory repositories through
``app.dependency_overrides``; callers authenticate with real JWTs.
"""

import os
import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set testing mode BEFORE importing app to use NullPool and disable rate limits
os.environ["TESTING"] = "true"

from src.config import settings

# Override settings for testing
settings.testing = True
# Key derivation is deliberately slow in production; keep tests fast
settings.bearer_link_kdf_iterations = 1_000

from src.core.security import create_access_token
from src.main import app
from src.models.user import User, UserRole
from src.repositories import (
    get_grant_repository,
    get_token_repository,
    get_user_directory,
)
from src.repositories.memory import (
    InMemoryGrantRepository,
    InMemoryShareTokenRepository,
    InMemoryStore,
    InMemoryUserDirectory,
)

FIXED_NOW = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)


def make_user(role: UserRole, email: str, display_name: str = "") -> User:
    return User(
        id=uuid.uuid4(),
        email=email,
        display_name=display_name,
        role=role,
        is_active=True,
    )


def auth_headers(user: User) -> dict[str, str]:
    """Authorization header carrying a session JWT for ``user``."""
    token = create_access_token(user.id, user.email, user.role.value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def token_repo(store) -> InMemoryShareTokenRepository:
    return InMemoryShareTokenRepository(store)


@pytest.fixture
def grant_repo(store) -> InMemoryGrantRepository:
    return InMemoryGrantRepository(store)


@pytest.fixture
def user_directory(store) -> InMemoryUserDirectory:
    return InMemoryUserDirectory(store)


@pytest.fixture
def patient(store) -> User:
    return store.add_user(
        make_user(UserRole.PATIENT, "alice@example.com", "Alice Martin")
    )


@pytest.fixture
def doctor(store) -> User:
    return store.add_user(
        make_user(UserRole.DOCTOR, "dr.bernard@example.com", "Dr. Bernard")
    )


@pytest.fixture
def other_doctor(store) -> User:
    return store.add_user(make_user(UserRole.DOCTOR, "dr.chen@example.com", "Dr. Chen"))


@pytest.fixture
def relative(store) -> User:
    return store.add_user(make_user(UserRole.PATIENT, "sam@example.com", "Sam Martin"))


@pytest.fixture
def admin(store) -> User:
    return store.add_user(make_user(UserRole.ADMIN, "admin@example.com", "Admin"))


@pytest.fixture
def app_with_store(token_repo, grant_repo, user_directory):
    """Point every repository dependency at the in-memory store."""
    app.dependency_overrides[get_token_repository] = lambda: token_repo
    app.dependency_overrides[get_grant_repository] = lambda: grant_repo
    app.dependency_overrides[get_user_directory] = lambda: user_directory
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app_with_store) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing the API."""
    async with AsyncClient(
        transport=ASGITransport(app=app_with_store),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def headers_for():
    """Build auth headers for a user: ``headers_for(patient)``."""
    return auth_headers

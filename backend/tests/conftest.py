"""
BlogSpace Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   The environment is pointed at a throwaway SQLite file and storage
       directory BEFORE any blogspace module is imported, so the
       module-level settings, engine and service singletons pick them up.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (service unit tests)
    ├── temp_storage:    Temporary directory for media tests
    ├── png_bytes:       A tiny but real PNG image
    ├── database:        Fresh schema on the SQLite test database
    ├── test_client:     HTTPX AsyncClient routed into the FastAPI app
    └── make_user / make_post: factories that go through the real API
"""

import os
import tempfile

# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run before any blogspace import
_TEST_DIR = tempfile.mkdtemp(prefix="blogspace_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["JWT_SECRET"] = "test-secret-that-is-long-enough-for-hs256"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_DIR, "storage")
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"

import base64  # noqa: E402
from typing import Any, Dict  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

API = "/api/v1"

# 1x1 transparent PNG
PNG_1X1 = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


# ══════════════════════════════════════════════════════════════════════════
# Unit Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_get_blog(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = blog
            ...
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.get = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def png_bytes():
    return PNG_1X1


# ══════════════════════════════════════════════════════════════════════════
# API Test Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def database():
    """Drops and recreates every table, then disposes the pool after the test."""
    import blogspace.models  # noqa: F401
    from blogspace.database import Base, engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def test_client(database):
    """
    HTTPX AsyncClient talking to the FastAPI app in-process.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from blogspace.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def auth_header(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(test_client):
    """
    Factory: signs up a user through the API.

    Returns the AuthResponse body (token + user) with the password added.
    """

    async def _make_user(username: str = None, password: str = "secret123", **extra: Any) -> Dict[str, Any]:
        username = username or f"user_{uuid4().hex[:8]}"
        payload = {
            "username": username,
            "email": f"{username.lower()}@example.com",
            "password": password,
            **extra,
        }
        response = await test_client.post(f"{API}/users/signup", json=payload)
        assert response.status_code == 201, response.text
        body = response.json()
        body["password"] = password
        return body

    return _make_user


def post_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "title": "A post about testing",
        "content": "Testing async web services is mostly about isolation and fixtures.",
        "excerpt": "Notes on testing async services.",
        "category": "Technology",
        "tags": ["python", "testing"],
        "status": "published",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_post(test_client):
    """Factory: creates a post as the given user and returns the response body."""

    async def _make_post(token: str, **overrides: Any) -> Dict[str, Any]:
        response = await test_client.post(
            f"{API}/blogs", json=post_payload(**overrides), headers=auth_header(token)
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _make_post


async def promote_to_admin(user_id: str) -> None:
    """Grant the admin role directly in the database (no API for it)."""
    from uuid import UUID

    from sqlalchemy import update

    from blogspace.database import async_session_factory
    from blogspace.models.user import User

    async with async_session_factory() as session:
        await session.execute(update(User).where(User.id == UUID(user_id)).values(role="admin"))
        await session.commit()

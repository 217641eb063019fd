"""
MarkSync Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Store and coordinator tests run against a real SQLite database
       (aiosqlite) created fresh for every test, so transactions, unique
       constraints and ON CONFLICT behave as they do in production.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session:  AsyncMock session for pure unit tests
    ├── session_factory:  async_sessionmaker bound to a fresh SQLite file
    ├── db_session:       one session from session_factory
    ├── users:            two registered users (alice, bob) → ids
    ├── bookmarks_of:     reads a user's stored bookmarks as {url: title}
    └── test_client:      HTTPX AsyncClient wired to the app and session_factory
"""

import os
import tempfile

# Override settings BEFORE any marksync import reads them
_TEST_ROOT = tempfile.mkdtemp(prefix="marksync_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_ROOT}/app.db"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["BCRYPT_ROUNDS"] = "4"  # bcrypt minimum; keeps hashing fast in tests
os.environ["DB_AUTO_CREATE_TABLES"] = "false"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

from typing import Dict  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

import marksync.models  # noqa: E402,F401
from marksync.database import Base, get_session_factory  # noqa: E402
from marksync.models.bookmark import Bookmark  # noqa: E402
from marksync.models.user import User  # noqa: E402


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        mock_db_session.execute.return_value.scalars.return_value.first.return_value = user
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory over a fresh SQLite database with all tables created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'marksync.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def users(session_factory) -> Dict[str, int]:
    """Two committed users; returns {"alice": id, "bob": id}."""
    async with session_factory() as session:
        alice = User(name="Alice", username="alice", email="alice@example.com", password_hash="x")
        bob = User(name="Bob", username="bob", email="bob@example.com", password_hash="x")
        session.add_all([alice, bob])
        await session.commit()
        return {"alice": alice.id, "bob": bob.id}


@pytest.fixture
def bookmarks_of(session_factory):
    """
    Returns an async callable reading a user's bookmarks as {url: title}.

    Uses its own session, i.e. sees only committed state.
    """
    async def read(user_id: int) -> Dict[str, str]:
        async with session_factory() as session:
            result = await session.execute(
                select(Bookmark.url, Bookmark.title).where(Bookmark.user_id == user_id)
            )
            return {url: title for url, title in result.all()}

    return read


@pytest_asyncio.fixture
async def test_client(session_factory):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    The app's pool handle is replaced with the per-test SQLite factory.
    """
    from marksync.main import app

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()

"""
MarkSync Backend — Database Engine & Session Management
=========================================================

What:  Async SQLAlchemy engine, session factory, FastAPI dependencies, and
       schema bootstrap.
How:   The engine (and its connection pool) is a process-wide resource with an
       explicit lifecycle: init_engine() at startup, dispose_engine() at
       shutdown. Consumers receive the session factory explicitly, either via
       FastAPI's Depends() or as a plain argument.
Who:   main.py (lifecycle), routes (dependencies), services (unit of work).

Bounded Waits:
    pool_timeout      → waiting for a free pooled connection
    connect timeout   → establishing a new connection (asyncpg `timeout`)
    command_timeout   → client-side per-statement limit (asyncpg)
    statement_timeout → server-side per-statement limit (PostgreSQL)
    A stalled store therefore raises instead of hanging the request.
"""

import logging
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Depends
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from marksync.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object between the models, the startup
    bootstrap (create_all) and Alembic autogenerate.
    """
    pass


# ── Process-wide Pool Handle ──────────────────────────────────────────────
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None

# Backends with an INSERT ... ON CONFLICT DO NOTHING the bookmark store can emit
SUPPORTED_BACKENDS = ("postgresql", "sqlite")


def build_engine_options(database_url: str) -> Dict[str, Any]:
    """
    Engine keyword arguments for the given backend.

    PostgreSQL gets pool sizing and the asyncpg timeouts; SQLite (tests,
    local hacking) only gets a busy timeout because its pool classes do not
    accept sizing arguments.
    """
    url = make_url(database_url)
    options: Dict[str, Any] = {
        "pool_pre_ping": settings.db_pool_pre_ping,
        "echo": settings.log_level == "DEBUG",
    }

    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"timeout": settings.db_connect_timeout}
        return options

    connect_args: Dict[str, Any] = {
        "timeout": settings.db_connect_timeout,
        "command_timeout": settings.db_statement_timeout,
        "server_settings": {
            # PostgreSQL expects milliseconds
            "statement_timeout": str(int(settings.db_statement_timeout * 1000)),
        },
    }
    if settings.db_ssl_require:
        connect_args["ssl"] = "require"

    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=3600,
        connect_args=connect_args,
    )
    return options


def init_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create the engine and session factory. Idempotent.

    Called from the application lifespan before the first request.

    Raises:
        ValueError: the URL names a backend outside SUPPORTED_BACKENDS
    """
    global _engine, _session_factory
    if _engine is not None:
        return _engine

    url = database_url or settings.database_url
    backend = make_url(url).get_backend_name()
    if backend not in SUPPORTED_BACKENDS:
        raise ValueError(
            f"Unsupported database backend '{backend}'; expected one of {SUPPORTED_BACKENDS}"
        )
    _engine = create_async_engine(url, **build_engine_options(url))
    # expire_on_commit=False: ORM objects stay readable after the unit of work ends
    _session_factory = async_sessionmaker(
        _engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    logger.info("Database engine initialized (%s)", make_url(url).render_as_string(hide_password=True))
    return _engine


def get_engine() -> AsyncEngine:
    """Returns the process-wide engine, creating it on first use."""
    if _engine is None:
        return init_engine()
    return _engine


async def dispose_engine() -> None:
    """
    Gracefully closes all pooled connections.

    Called during application shutdown.
    """
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Database engine disposed")


# ── FastAPI Dependencies ──────────────────────────────────────────────────
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    FastAPI dependency returning the pool handle.

    The sync coordinator opens its own transaction from this factory;
    tests swap it out through app.dependency_overrides.
    """
    if _session_factory is None:
        init_engine()
    return _session_factory


async def get_db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits the transaction
        4. On error: rolls back and re-raises for the global error handler
        5. Always: closes the session (returns connection to pool)
    """
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Schema Bootstrap ──────────────────────────────────────────────────────
@retry(
    # Connection refused / DNS not ready while the database container starts
    retry=retry_if_exception_type((OSError, SQLAlchemyError)),
    stop=stop_after_attempt(settings.db_bootstrap_attempts),
    wait=wait_exponential_jitter(
        initial=settings.db_bootstrap_min_wait,
        max=settings.db_bootstrap_max_wait,
        jitter=1,
    ),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
async def create_tables(engine: AsyncEngine) -> None:
    """
    Create users and bookmarks tables if they do not exist yet.

    Retried with exponential backoff; after the last attempt the original
    error propagates and startup fails.
    """
    # Register models on Base.metadata
    import marksync.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Tables ensured.")

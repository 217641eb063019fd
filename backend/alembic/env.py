"""
MarkSync Backend — Alembic Migration Environment
==================================================

What:  Runs the `users` / `bookmarks` migrations with the same connection
       settings the application uses.
How:   DATABASE_URL comes from marksync.config, already rewritten to the
       asyncpg driver, so alembic.ini carries no URL. Online migrations open
       an async engine and hand a sync connection to Alembic via run_sync().
Who:   `alembic upgrade head`, `alembic revision --autogenerate`.

Relation to startup bootstrap:
    With DB_AUTO_CREATE_TABLES=true the app creates missing tables itself.
    Deployments that manage the schema here set it to false; revision 001
    matches what the bootstrap creates, named unique constraints included,
    so either path leaves the same schema behind.
"""

import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool
from sqlalchemy.ext.asyncio import async_engine_from_config

import marksync.models  # noqa: F401  (registers users + bookmarks on Base.metadata)
from marksync.config import settings
from marksync.database import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

config.set_main_option("sqlalchemy.url", settings.database_url)


def run_migrations_offline() -> None:
    """`alembic upgrade head --sql`: print the DDL for review instead of applying it."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        compare_type=True,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    # compare_type: autogenerate also reports column type changes (e.g. Integer → BigInteger ids)
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    """
    Apply migrations over a single asyncpg connection.

    NullPool: a migration run is one-shot, there is nothing to pool.
    """
    engine = async_engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    try:
        async with engine.connect() as connection:
            await connection.run_sync(do_run_migrations)
    finally:
        await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())

"""
Alembic environment for the storefront schema.

The URL always comes from ``APP_DATABASE_URL`` and is given the same async
driver the application uses, so ``alembic upgrade head`` migrates whichever
database the service is configured for (PostgreSQL in deployment, SQLite for
local runs).
"""

import asyncio
from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import pool
from sqlalchemy.engine import Connection
from sqlalchemy.ext.asyncio import create_async_engine

from storefront.core.config import get_settings
from storefront.core.logging import get_logger
from storefront.database.base import Base
from storefront.database.connection import _convert_database_url_to_async

# Registers every table on Base.metadata
import storefront.database.models  # noqa: F401

if context.config.config_file_name is not None:
    fileConfig(context.config.config_file_name)

logger = get_logger(__name__)

DATABASE_URL = _convert_database_url_to_async(get_settings().database_url)


def _context_options() -> dict[str, Any]:
    # SQLite cannot ALTER most constraints in place
    return {
        "target_metadata": Base.metadata,
        "compare_type": True,
        "render_as_batch": DATABASE_URL.startswith("sqlite"),
    }


def run_offline() -> None:
    """Emit the migration SQL without connecting."""
    context.configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_context_options(),
    )
    with context.begin_transaction():
        context.run_migrations()


def _migrate(connection: Connection) -> None:
    context.configure(connection=connection, **_context_options())
    with context.begin_transaction():
        context.run_migrations()


async def run_online() -> None:
    engine = create_async_engine(DATABASE_URL, poolclass=pool.NullPool)
    try:
        async with engine.connect() as connection:
            await connection.run_sync(_migrate)
    finally:
        await engine.dispose()


driver = DATABASE_URL.split("://", 1)[0]
if context.is_offline_mode():
    logger.info("Generating migration SQL", driver=driver)
    run_offline()
else:
    logger.info("Applying migrations", driver=driver)
    try:
        asyncio.run(run_online())
    except Exception as e:
        logger.error("Migration failed", driver=driver, error=str(e), error_type=type(e).__name__)
        raise

"""
Database connection management with SQLAlchemy async engine.

The ``Database`` object owns the async engine and session factory. It is
constructed explicitly by the application lifespan (or by tests), stored
on ``app.state`` and disposed on shutdown; nothing here is a lazily
created module global.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from storefront.core.config import Settings
from storefront.core.logging import get_logger
from storefront.database import models  # noqa: F401  registers mapped tables
from storefront.database.base import Base

logger = get_logger(__name__)


def _convert_database_url_to_async(url: str) -> str:
    """
    Convert a database URL to its async driver form.

    Args:
        url: Database connection URL

    Returns:
        URL using asyncpg for PostgreSQL or aiosqlite for SQLite
    """
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return url


class Database:
    """
    Async engine and session factory for one application instance.

    Example:
        database = Database.from_settings(settings)
        async with database.session() as session:
            ...
        await database.dispose()
    """

    def __init__(self, url: str, **engine_options: Any) -> None:
        self.url = _convert_database_url_to_async(url)
        self.engine: AsyncEngine = create_async_engine(self.url, **engine_options)
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """
        Build a database from application settings.

        Pool sizing only applies to server databases; SQLite uses the
        driver's default pool.
        """
        options: dict[str, Any] = {"echo": settings.debug, "pool_pre_ping": True}
        if not settings.database_url.startswith("sqlite"):
            options.update(
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_recycle=3600,
            )

        database = cls(settings.database_url, **options)
        logger.info(
            "Database engine created",
            dialect=database.engine.dialect.name,
            environment=settings.environment,
        )
        return database

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Open a session that commits on success and rolls back on error.

        Services commit their own units of work; the final commit here only
        flushes anything left pending.

        Yields:
            Async database session
        """
        session = self.session_factory()
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.warning(
                "Database session rolled back",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise
        finally:
            await session.close()

    async def create_all(self) -> None:
        """Create every mapped table. Used for SQLite runs and tests."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def check_health(self, max_retries: int = 3, retry_delay: float = 0.5) -> bool:
        """
        Check connectivity with a trivial query.

        Args:
            max_retries: Attempts before reporting unhealthy
            retry_delay: Delay in seconds between attempts

        Returns:
            True if the database answered, False otherwise
        """
        for attempt in range(1, max_retries + 1):
            try:
                async with self.engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
                return True
            except SQLAlchemyError as e:
                logger.warning(
                    "Database health check failed",
                    attempt=attempt,
                    max_retries=max_retries,
                    error=str(e),
                )
                if attempt < max_retries:
                    await asyncio.sleep(retry_delay)
        return False

    async def dispose(self) -> None:
        """Close every pooled connection."""
        await self.engine.dispose()
        logger.info("Database connections closed")

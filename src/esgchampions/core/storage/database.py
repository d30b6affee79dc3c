"""Async database engine and session management."""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy import event
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from ..errors import StoreUnavailableError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class Database:
    """Owns the async engine and hands out sessions.

    Each session is one unit of work: callers add and modify rows, then commit
    explicitly. Leaving the context with an exception rolls everything back.
    """

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url

        engine_kwargs: dict = {"echo": echo}
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # A single shared connection keeps the in-memory database alive
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}

        self.engine: AsyncEngine = create_async_engine(database_url, **engine_kwargs)

        if database_url.startswith("sqlite"):
            event.listen(self.engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session, rolling back on error.

        Operational and connection failures are re-raised as
        StoreUnavailableError so callers can tell a transient backend problem
        from a logic error.
        """
        async with self._session_factory() as session:
            try:
                yield session
            except (OperationalError, InterfaceError) as e:
                await session.rollback()
                logger.warning(f"Store unavailable: {e}")
                raise StoreUnavailableError(str(e)) from e
            except DBAPIError as e:
                await session.rollback()
                if e.connection_invalidated:
                    raise StoreUnavailableError(str(e)) from e
                raise
            except BaseException:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """Create all tables registered on the declarative base."""
        # Import models so every table is registered before create_all
        from .. import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop all tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def close(self) -> None:
        """Dispose of the engine and its connection pool."""
        await self.engine.dispose()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# Global database instance
_db: Optional[Database] = None


def init_db(database_url: str, echo: bool = False) -> Database:
    """Initialize the global database instance.

    Args:
        database_url: SQLAlchemy async database URL
        echo: Log emitted SQL

    Returns:
        Database instance
    """
    global _db
    _db = Database(database_url, echo=echo)
    return _db


def get_db() -> Database:
    """Get the global database instance.

    Raises:
        RuntimeError: If the database has not been initialized
    """
    if _db is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _db

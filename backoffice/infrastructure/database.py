"""Database configuration and session management.

Provides the async SQLAlchemy engine and session factory behind an
explicit ``Database`` handle that the application opens at startup and
disposes at shutdown.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from contextvars import ContextVar

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from backoffice.infrastructure.repositories import StoreUnavailableError

logger = structlog.get_logger()

# Base class for models
Base = declarative_base()

# Session of the unit of work running in the current task, if any
_current_session: ContextVar[AsyncSession | None] = ContextVar("backoffice_session", default=None)


class Database:
    """Engine and session factory for one database URL."""

    def __init__(self, url: str, echo: bool = False) -> None:
        self.engine = create_async_engine(url, echo=echo, pool_pre_ping=True)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a unit of work, or join the one already open in this task.

        The outermost block commits on success and rolls back on error.

        Raises:
            StoreUnavailableError: If the database rejects or drops the work.
        """
        current = _current_session.get()
        if current is not None:
            yield current
            return

        async with self.session_factory() as session:
            token = _current_session.set(session)
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error("Database operation failed", error=str(e))
                raise StoreUnavailableError(f"Database operation failed: {e.__class__.__name__}") from e
            except Exception:
                await session.rollback()
                raise
            finally:
                _current_session.reset(token)

    async def ping(self) -> bool:
        """Check connectivity."""
        try:
            async with self.engine.connect() as conn:
                await conn.exec_driver_sql("SELECT 1")
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Database ping failed", error=str(e))
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()

"""
Walk Check-in - Database Configuration
Async engine, per-request sessions and the unit-of-work decorator used by
the check-in services
"""

import logging
from functools import wraps
from typing import AsyncGenerator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import get_settings
from app.core.exceptions import StoreError
from app.models.base import Base

logger = logging.getLogger(__name__)

settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session.

    Never commits: services commit their own unit of work through
    ``transactional``. Anything left pending is discarded on close.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def transactional(func):
    """
    Run a service method as one unit of work on ``self.db``.

    Commits when the method returns, rolls back on any exception.
    Store failures surface as ``StoreError``; domain errors are re-raised
    unchanged. Do not commit inside the wrapped method.
    """

    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        session: AsyncSession = self.db
        try:
            result = await func(self, *args, **kwargs)
            await session.commit()
            return result
        except SQLAlchemyError as e:
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            await session.rollback()
            raise StoreError(f"Store failure in {func.__name__}") from e
        except Exception:
            await session.rollback()
            raise

    return wrapper


async def init_db() -> None:
    """Create the participant, team, admin and notification tables if missing."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Dispose of the connection pool on shutdown."""
    await engine.dispose()

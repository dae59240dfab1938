"""Async SQLAlchemy engine and per-request sessions."""

import logging
import typing as t

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from smartshelf.core.config import SETTINGS

LOGGER: logging.Logger = logging.getLogger(__name__)


class Base(DeclarativeBase):  # pylint: disable=too-few-public-methods
    """Declarative base shared by the SmartShelf tables."""


ENGINE: AsyncEngine = create_async_engine(
    SETTINGS.database_url, echo=SETTINGS.debug
)

# Rows stay usable after commit so routers can hand them to the scheduler.
ASYNC_SESSION_MAKER: async_sessionmaker[AsyncSession] = async_sessionmaker(
    ENGINE, expire_on_commit=False, autoflush=False
)


async def get_db() -> t.AsyncGenerator[AsyncSession, None]:
    """Yield a session that commits when the request succeeds.

    Yields:
        AsyncSession: Session bound to the request.
    """
    async with ASYNC_SESSION_MAKER() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        await session.commit()


async def init_db() -> None:
    """Create any missing tables."""
    async with ENGINE.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    LOGGER.debug("Schema ready on %s", SETTINGS.database_url)


async def close_db() -> None:
    """Release pooled connections."""
    await ENGINE.dispose()

"""Async SQLAlchemy engine and session creation."""

import logging
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from alignfarm.config import settings

logger = logging.getLogger(__name__)


def create_db_engine(url: str | None = None) -> AsyncEngine:
    """Create an async SQLAlchemy engine."""
    db_url = url or settings.effective_database_url
    engine_kwargs: dict = {"echo": False, "pool_pre_ping": True}

    # SQLite does not support pool_size / max_overflow
    if "sqlite" not in db_url:
        engine_kwargs.update(pool_size=5, max_overflow=5)

    return create_async_engine(db_url, **engine_kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine) -> None:
    """Create the job bookkeeping tables if they do not exist yet."""
    from alignfarm.db.base import Base
    import alignfarm.db.models  # noqa: F401  register all ORM models

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def idle_connections(engine: AsyncEngine, session: AsyncSession):
    """Hold no database connection for the duration of the block.

    Pending work is committed, the session hands its connection back and the
    pool is disposed. The pool reconnects lazily on the next statement, so
    the session stays usable after the block on every exit path.
    """
    await session.commit()
    await engine.dispose()
    logger.debug("Released database connections for long wait")
    try:
        yield
    finally:
        logger.debug("Database connections will be re-established on demand")

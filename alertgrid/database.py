"""Database connection and table management."""

import logging
import time
from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from alertgrid.config import Settings, get_settings

logger = logging.getLogger(__name__)


def now_millis() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Create an async engine for the configured alert store."""
    kwargs = {"echo": settings.debug}
    # SQLite uses a single-file store; pool sizing only applies to server databases
    if not settings.database_url.startswith("sqlite"):
        kwargs.update(pool_pre_ping=True, pool_size=5, max_overflow=10)
    return create_async_engine(settings.database_url, **kwargs)


@lru_cache
def get_engine() -> AsyncEngine:
    """Get the shared engine for the configured database."""
    return create_engine_from_settings(get_settings())


def get_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build a session factory bound to an engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    """Make sure the alert store is reachable and the alerts table exists."""
    from alertgrid.models import Alert, GridMetadata

    async with engine.begin() as conn:
        await conn.run_sync(
            Base.metadata.create_all,
            tables=[Alert.__table__, GridMetadata.__table__],
        )
    logger.info("Alert store initialized")


async def rebuild_grid_tables(engine: AsyncEngine) -> None:
    """Drop and recreate the aggregate grid tables.

    Readers querying the grids during a rebuild see empty tables until the
    pipelines repopulate them.
    """
    from alertgrid.models import DensityGridCell, DiversityGridCell

    tables = [DensityGridCell.__table__, DiversityGridCell.__table__]
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all, tables=tables)
        await conn.run_sync(Base.metadata.create_all, tables=tables)
    logger.info("Grid tables recreated")


async def close_db() -> None:
    """Close database connections."""
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
        get_engine.cache_clear()

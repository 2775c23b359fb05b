"""Grid rebuild orchestration and metadata summary."""

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from alertgrid.config import Settings, get_settings
from alertgrid.database import (
    get_engine,
    get_session_maker,
    init_db,
    now_millis,
    rebuild_grid_tables,
)
from alertgrid.models import Alert, GridMetadata
from alertgrid.models.metadata import (
    CENTER_LAT_KEY,
    CENTER_LON_KEY,
    LAST_UPDATED_KEY,
    TOTAL_ALERTS_KEY,
)
from alertgrid.schemas.grid import DAY_MS, BoundingBox, GridUpdateResult, TimeWindow
from alertgrid.services.density import build_density_grids
from alertgrid.services.diversity import build_diversity_grids

logger = logging.getLogger(__name__)


async def get_reference_timestamp(session_maker: async_sessionmaker[AsyncSession]) -> int:
    """Newest alert timestamp, or the wall clock when the store is empty.

    Anchoring windows on the data keeps a run reproducible against a frozen
    snapshot of the alert store.
    """
    async with session_maker() as db:
        result = await db.execute(select(func.max(Alert.pub_millis)))
        latest = result.scalar()

    if latest is None:
        return now_millis()
    return int(latest)


async def count_alerts(
    session_maker: async_sessionmaker[AsyncSession],
    windows: list[TimeWindow],
    now_ms: int,
) -> int:
    """Count positioned alerts between the oldest and newest window boundaries."""
    oldest_end = max(window.days_ago_end for window in windows)
    newest_start = min(window.days_ago_start for window in windows)

    query = (
        select(func.count(Alert.uuid))
        .where(Alert.pub_millis >= now_ms - oldest_end * DAY_MS)
        .where(Alert.longitude.isnot(None))
        .where(Alert.latitude.isnot(None))
    )
    if newest_start > 0:
        query = query.where(Alert.pub_millis < now_ms - newest_start * DAY_MS)

    async with session_maker() as db:
        result = await db.execute(query)
        return result.scalar() or 0


async def write_metadata(
    session_maker: async_sessionmaker[AsyncSession],
    reference_timestamp: int,
    area: BoundingBox,
    total_alerts: int,
) -> None:
    """Replace the metadata table contents with this run's summary."""
    values = {
        LAST_UPDATED_KEY: str(reference_timestamp),
        CENTER_LON_KEY: str(area.center_lon),
        CENTER_LAT_KEY: str(area.center_lat),
        TOTAL_ALERTS_KEY: str(total_alerts),
    }

    async with session_maker() as db:
        try:
            await db.execute(delete(GridMetadata))
            db.add_all([GridMetadata(key=key, value=value) for key, value in values.items()])
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    logger.info(f"Metadata updated: {values}")


async def run_grid_update(
    engine: AsyncEngine | None = None,
    settings: Settings | None = None,
) -> GridUpdateResult:
    """Rebuild all density and diversity grids and the metadata summary.

    Failures reaching the store before any grid is written propagate. Failed
    batch writes inside the pipelines are logged and skipped.
    """
    settings = settings or get_settings()
    engine = engine or get_engine()
    session_maker = get_session_maker(engine)

    await init_db(engine)
    reference_timestamp = await get_reference_timestamp(session_maker)
    logger.info(f"Reference timestamp: {reference_timestamp}")

    await rebuild_grid_tables(engine)

    density_cells = await build_density_grids(
        session_maker,
        settings.time_windows,
        reference_timestamp,
        settings.precision_min,
        settings.precision_max,
    )
    diversity_cells = await build_diversity_grids(
        session_maker,
        settings.time_windows,
        settings.diversity_radii,
        reference_timestamp,
        settings.precision_min,
        settings.precision_max,
    )

    total_alerts = await count_alerts(session_maker, settings.time_windows, reference_timestamp)
    await write_metadata(session_maker, reference_timestamp, settings.area, total_alerts)

    return GridUpdateResult(
        reference_timestamp=reference_timestamp,
        density_cells=density_cells,
        diversity_cells=diversity_cells,
        total_alerts=total_alerts,
    )

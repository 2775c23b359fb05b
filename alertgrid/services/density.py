"""Density grid generation.

Each time window is bucketed into cells independently at every precision
level. Counts are compressed with ``ln(1 + count)`` and min/max normalized
to 0-255 per level, so a level's intensities are relative to that level
only.
"""

import logging
import math
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alertgrid.models import Alert, DensityGridCell
from alertgrid.schemas.grid import TimeWindow
from alertgrid.services.scaling import Cell, get_min_max, normalize, scale_point
from alertgrid.services.storage import bulk_insert

logger = logging.getLogger(__name__)


def window_conditions(window: TimeWindow, now_ms: int) -> list:
    """SQL conditions selecting the alerts inside a time window."""
    conditions = [Alert.pub_millis >= window.lower_bound(now_ms)]
    upper = window.upper_bound(now_ms)
    if upper is not None:
        conditions.append(Alert.pub_millis < upper)
    return conditions


async def fetch_window_points(
    session_maker: async_sessionmaker[AsyncSession],
    window: TimeWindow,
    now_ms: int,
) -> list[tuple[float, float]]:
    """Load (longitude, latitude) of every positioned alert in a window."""
    async with session_maker() as db:
        result = await db.execute(
            select(Alert.longitude, Alert.latitude)
            .where(*window_conditions(window, now_ms))
            .where(Alert.longitude.isnot(None))
            .where(Alert.latitude.isnot(None))
        )
        return [(lon, lat) for lon, lat in result.all()]


def count_cells(points: Iterable[tuple[float, float]], level: int) -> dict[Cell, int]:
    """Count points per cell at a precision level, skipping unscalable points."""
    counts: dict[Cell, int] = {}
    for lon, lat in points:
        cell = scale_point(lon, lat, level)
        if cell is None:
            continue
        counts[cell] = counts.get(cell, 0) + 1
    return counts


def compute_densities(counts: dict[Cell, int]) -> dict[Cell, int]:
    """Log-normalize cell counts to 0-255 and drop cells that end up at zero."""
    log_values = {cell: math.log1p(count) for cell, count in counts.items()}
    min_value, max_value = get_min_max(log_values)

    densities = {}
    for cell, log_value in log_values.items():
        density = normalize(log_value, min_value, max_value)
        if density > 0:
            densities[cell] = density
    return densities


async def build_window_density(
    session_maker: async_sessionmaker[AsyncSession],
    window: TimeWindow,
    now_ms: int,
    min_level: int,
    max_level: int,
) -> int:
    """Generate every precision level for one time window. Returns cells written."""
    points = await fetch_window_points(session_maker, window, now_ms)
    if not points:
        logger.info(f"No data for window {window.id} ({window.name}). Skipping.")
        return 0

    logger.info(f"Found {len(points)} reports for window {window.id} ({window.name}).")

    written = 0
    for level in range(max_level, min_level - 1, -1):
        counts = count_cells(points, level)
        if not counts:
            logger.info(f"No cells for window {window.id}, level {level}.")
            continue

        densities = compute_densities(counts)
        rows = [
            {
                "time_window_id": window.id,
                "level": level,
                "lon_scaled": lon,
                "lat_scaled": lat,
                "density": density,
            }
            for (lon, lat), density in densities.items()
        ]

        try:
            written += await bulk_insert(session_maker, DensityGridCell, rows)
        except SQLAlchemyError as e:
            logger.error(f"Error inserting density for window {window.id}, level {level}: {e}")
            continue

        logger.info(
            f"Window {window.id}, level {level}: {len(rows)} of {len(counts)} cells stored."
        )

    return written


async def build_density_grids(
    session_maker: async_sessionmaker[AsyncSession],
    windows: list[TimeWindow],
    now_ms: int,
    min_level: int,
    max_level: int,
) -> dict[int, int]:
    """Generate density grids for all time windows. Returns cells written per window."""
    written = {}
    for window in windows:
        logger.info(f"Processing density: {window.name} (ID: {window.id})")
        written[window.id] = await build_window_density(
            session_maker, window, now_ms, min_level, max_level
        )
    return written

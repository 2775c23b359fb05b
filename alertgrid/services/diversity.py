"""Temporal diversity grid generation.

Every positioned alert inside the configured horizon is labelled with the
most recent time window it belongs to, and each finest-level cell keeps the
most recent label seen in it. For every radius group, a cell's score is the
number of distinct labels found in the square neighborhood of cells around
it. Coarser levels are rolled up from the stored finer level by taking the
maximum child score, so they are never recomputed from raw alerts.
"""

import asyncio
import bisect
import logging
import math
from collections.abc import Iterable, Mapping

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from alertgrid.models import Alert, DiversityGridCell
from alertgrid.schemas.grid import TimeWindow
from alertgrid.services.scaling import Cell, parent_cell, scale_point
from alertgrid.services.storage import bulk_insert

logger = logging.getLogger(__name__)


def assign_window(timestamp_ms: int, windows: list[TimeWindow], now_ms: int) -> int | None:
    """Return the smallest window id whose lower boundary the timestamp satisfies."""
    for window in windows:
        if timestamp_ms >= window.lower_bound(now_ms):
            return window.id
    return None


def horizon_start(windows: list[TimeWindow], now_ms: int) -> int:
    """Oldest timestamp covered by any window."""
    return min(window.lower_bound(now_ms) for window in windows)


async def fetch_horizon_alerts(
    session_maker: async_sessionmaker[AsyncSession],
    windows: list[TimeWindow],
    now_ms: int,
) -> list[tuple[int, float, float]]:
    """Load (pub_millis, longitude, latitude) of positioned alerts in the horizon."""
    async with session_maker() as db:
        result = await db.execute(
            select(Alert.pub_millis, Alert.longitude, Alert.latitude)
            .where(Alert.pub_millis >= horizon_start(windows, now_ms))
            .where(Alert.longitude.isnot(None))
            .where(Alert.latitude.isnot(None))
        )
        return [(ts, lon, lat) for ts, lon, lat in result.all()]


def build_recent_window_index(
    alerts: Iterable[tuple[int, float, float]],
    windows: list[TimeWindow],
    now_ms: int,
    level: int,
) -> dict[Cell, int]:
    """Map each cell at ``level`` to the most recent window id observed in it."""
    index: dict[Cell, int] = {}
    for timestamp_ms, lon, lat in alerts:
        window_id = assign_window(timestamp_ms, windows, now_ms)
        if window_id is None:
            continue
        cell = scale_point(lon, lat, level)
        if cell is None:
            continue
        current = index.get(cell)
        if current is None or window_id < current:
            index[cell] = window_id
    return index


def half_width_cells(radius: float, max_level: int) -> int:
    """Number of finest-level cells covered by a radius along one axis."""
    cell_resolution = 10**-max_level
    return math.floor(radius / cell_resolution)


class _NeighborhoodScanner:
    """Counts distinct window labels in square neighborhoods of an index.

    Small neighborhoods probe every cell of the square; large ones walk the
    index entries sorted by longitude inside the square's longitude strip.
    Both give the same labels.
    """

    def __init__(self, index: Mapping[Cell, int], half_width: int, max_score: int):
        self._index = index
        self._half_width = half_width
        self._max_score = max_score
        span = 2 * half_width + 1
        self._probe_square = span * span <= len(index)
        if not self._probe_square:
            self._sorted = sorted(index.items())
            self._lons = [cell[0] for cell, _ in self._sorted]

    def score(self, cell: Cell) -> int:
        if self._probe_square:
            return self._score_by_probing(cell)
        return self._score_by_strip(cell)

    def _score_by_probing(self, cell: Cell) -> int:
        lon, lat = cell
        h = self._half_width
        seen = set()
        for dlon in range(-h, h + 1):
            for dlat in range(-h, h + 1):
                window_id = self._index.get((lon + dlon, lat + dlat))
                if window_id is None:
                    continue
                seen.add(window_id)
                if len(seen) >= self._max_score:
                    return len(seen)
        return len(seen)

    def _score_by_strip(self, cell: Cell) -> int:
        lon, lat = cell
        h = self._half_width
        start = bisect.bisect_left(self._lons, lon - h)
        stop = bisect.bisect_right(self._lons, lon + h)
        seen = set()
        for (_, other_lat), window_id in self._sorted[start:stop]:
            if abs(other_lat - lat) > h:
                continue
            seen.add(window_id)
            if len(seen) >= self._max_score:
                break
        return len(seen)


def score_neighborhoods(
    index: Mapping[Cell, int],
    half_width: int,
    max_score: int,
    anchors: Iterable[Cell] | None = None,
) -> dict[Cell, int]:
    """Score each anchor cell by the distinct windows visible around it.

    Anchors default to every indexed cell, which is exactly the set of cells
    holding at least one labelled alert.
    """
    scanner = _NeighborhoodScanner(index, half_width, max_score)
    scores: dict[Cell, int] = {}
    for cell in index if anchors is None else anchors:
        if cell in scores:
            continue
        scores[cell] = scanner.score(cell)
    return scores


def roll_up_scores(rows: Iterable[tuple[int, int, int]]) -> dict[Cell, int]:
    """Aggregate (lon, lat, score) rows to their parent cells by maximum score."""
    parents: dict[Cell, int] = {}
    for lon, lat, score in rows:
        parent = parent_cell((lon, lat))
        if score > parents.get(parent, 0):
            parents[parent] = score
    return parents


def _score_rows(radius_group_id: int, level: int, scores: Mapping[Cell, int]) -> list[dict]:
    return [
        {
            "radius_group_id": radius_group_id,
            "level": level,
            "lon_scaled": lon,
            "lat_scaled": lat,
            "diversity_score": score,
        }
        for (lon, lat), score in scores.items()
        if score > 0
    ]


async def fetch_level_scores(
    session_maker: async_sessionmaker[AsyncSession],
    radius_group_id: int,
    level: int,
) -> list[tuple[int, int, int]]:
    """Read back the stored (lon, lat, score) rows of one radius group and level."""
    async with session_maker() as db:
        result = await db.execute(
            select(
                DiversityGridCell.lon_scaled,
                DiversityGridCell.lat_scaled,
                DiversityGridCell.diversity_score,
            ).where(
                DiversityGridCell.radius_group_id == radius_group_id,
                DiversityGridCell.level == level,
            )
        )
        return [(lon, lat, score) for lon, lat, score in result.all()]


async def _store_level(
    session_maker: async_sessionmaker[AsyncSession],
    radius_group_id: int,
    level: int,
    scores: Mapping[Cell, int],
) -> int:
    rows = _score_rows(radius_group_id, level, scores)
    try:
        written = await bulk_insert(session_maker, DiversityGridCell, rows)
    except SQLAlchemyError as e:
        logger.error(
            f"Error inserting diversity for radius group {radius_group_id}, level {level}: {e}"
        )
        return 0
    logger.info(f"Radius group {radius_group_id}, level {level}: {written} cells stored.")
    return written


async def build_radius_group(
    session_maker: async_sessionmaker[AsyncSession],
    radius_group_id: int,
    radius: float,
    index: Mapping[Cell, int],
    max_score: int,
    min_level: int,
    max_level: int,
) -> int:
    """Score the finest level for one radius group, then roll it up level by level."""
    half_width = half_width_cells(radius, max_level)
    logger.info(
        f"Processing diversity radius group {radius_group_id} "
        f"(radius {radius}, half width {half_width} cells)"
    )

    scores = await asyncio.to_thread(score_neighborhoods, index, half_width, max_score)
    written = await _store_level(session_maker, radius_group_id, max_level, scores)

    # Each coarser level reads what was stored for the level below it
    for level in range(max_level - 1, min_level - 1, -1):
        children = await fetch_level_scores(session_maker, radius_group_id, level + 1)
        if not children:
            logger.info(
                f"No data at level {level + 1} for radius group {radius_group_id}. "
                f"Skipping level {level}."
            )
            continue
        written += await _store_level(
            session_maker, radius_group_id, level, roll_up_scores(children)
        )

    return written


async def build_diversity_grids(
    session_maker: async_sessionmaker[AsyncSession],
    windows: list[TimeWindow],
    radii: list[float],
    now_ms: int,
    min_level: int,
    max_level: int,
) -> dict[int, int]:
    """Generate temporal diversity grids for all radius groups.

    Returns cells written per radius group.
    """
    alerts = await fetch_horizon_alerts(session_maker, windows, now_ms)
    index = build_recent_window_index(alerts, windows, now_ms, max_level)
    logger.info(f"Indexed {len(index)} cells from {len(alerts)} reports for diversity.")

    written = {}
    for radius_group_id, radius in enumerate(radii):
        if not index:
            written[radius_group_id] = 0
            continue
        written[radius_group_id] = await build_radius_group(
            session_maker,
            radius_group_id,
            radius,
            index,
            len(windows),
            min_level,
            max_level,
        )
    return written

"""Coordinate scaling and value normalization for grid cells.

A cell at precision level L is addressed by ``(lon_scaled, lat_scaled)``
where each axis is ``trunc(coord * 10**L)``. The parent of a level L+1 cell
is obtained by dividing both scaled coordinates by 10, truncating toward
zero.
"""

import math
from collections.abc import Iterable, Mapping
from numbers import Real

Cell = tuple[int, int]

DENSITY_SCALE = 255


def _is_number(value: object) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and not math.isnan(value)


def scale_coordinate(coord: float | None, level: int) -> int | None:
    """Convert a degree coordinate to its integer cell address at a precision level.

    Returns None for missing, non-finite or zero coordinates.
    """
    if not _is_number(coord) or not math.isfinite(coord) or coord == 0:
        return None
    return math.trunc(coord * 10**level)


def scale_point(lon: float | None, lat: float | None, level: int) -> Cell | None:
    """Scale a lon/lat pair, None if either axis fails."""
    lon_scaled = scale_coordinate(lon, level)
    lat_scaled = scale_coordinate(lat, level)
    if lon_scaled is None or lat_scaled is None:
        return None
    return lon_scaled, lat_scaled


def _truncate_div10(value: int) -> int:
    # Integer division toward zero; Python's // floors
    quotient = abs(value) // 10
    return quotient if value >= 0 else -quotient


def parent_cell(cell: Cell) -> Cell:
    """Map a cell to the cell containing it one precision level coarser."""
    return _truncate_div10(cell[0]), _truncate_div10(cell[1])


def normalize(
    value: float | None,
    min_value: float,
    max_value: float,
    scale: int = DENSITY_SCALE,
) -> int:
    """Linearly map a value from [min_value, max_value] onto [0, scale].

    A single-valued distribution maps to ``scale`` when that value is
    positive and to 0 otherwise. Missing values map to 0.
    """
    if max_value == min_value:
        return scale if min_value > 0 else 0
    if not _is_number(value):
        return 0
    ratio = (value - min_value) / (max_value - min_value)
    # Round half up
    return int(math.floor(ratio * scale + 0.5))


def get_min_max(values: Mapping | Iterable) -> tuple[float, float]:
    """Return (min, max) of the numeric values, or (0, 0) if there are none."""
    if isinstance(values, Mapping):
        values = values.values()

    numbers = [v for v in values if _is_number(v)]
    if not numbers:
        return 0, 0
    return min(numbers), max(numbers)

"""Pydantic schemas."""

from alertgrid.schemas.grid import BoundingBox, GridUpdateResult, TimeWindow

__all__ = [
    "BoundingBox",
    "GridUpdateResult",
    "TimeWindow",
]

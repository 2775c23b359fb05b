"""Schemas for grid configuration and run results."""

from pydantic import BaseModel, Field, model_validator

DAY_MS = 86_400_000  # 24h in milliseconds


class TimeWindow(BaseModel):
    """A relative recency bucket, measured in days before the reference timestamp.

    Covers ``[now - days_ago_end days, now - days_ago_start days)``. A window
    starting at 0 days ago has no upper bound, so the newest report always
    lands in it.
    """

    id: int = Field(ge=0)
    name: str = ""
    days_ago_start: int = Field(ge=0)
    days_ago_end: int = Field(gt=0)

    @model_validator(mode="after")
    def check_range(self) -> "TimeWindow":
        """Ensure the window spans a non-empty range."""
        if self.days_ago_end <= self.days_ago_start:
            raise ValueError(
                f"time window {self.id}: days_ago_end ({self.days_ago_end}) must be "
                f"greater than days_ago_start ({self.days_ago_start})"
            )
        return self

    def lower_bound(self, now_ms: int) -> int:
        """Oldest timestamp (inclusive) inside this window."""
        return now_ms - self.days_ago_end * DAY_MS

    def upper_bound(self, now_ms: int) -> int | None:
        """Newest timestamp (exclusive) inside this window, None when unbounded."""
        if self.days_ago_start == 0:
            return None
        return now_ms - self.days_ago_start * DAY_MS

    def contains(self, timestamp_ms: int, now_ms: int) -> bool:
        """Check whether a timestamp falls inside this window."""
        if timestamp_ms < self.lower_bound(now_ms):
            return False
        upper = self.upper_bound(now_ms)
        return upper is None or timestamp_ms < upper


DEFAULT_TIME_WINDOWS = [
    TimeWindow(id=0, name="last 7 days", days_ago_start=0, days_ago_end=7),
    TimeWindow(id=1, name="7-14 days ago", days_ago_start=7, days_ago_end=14),
    TimeWindow(id=2, name="14-30 days ago", days_ago_start=14, days_ago_end=30),
    TimeWindow(id=3, name="30-90 days ago", days_ago_start=30, days_ago_end=90),
]


class BoundingBox(BaseModel):
    """Geographic bounds of the ingestion area."""

    top: float
    bottom: float
    left: float
    right: float

    @property
    def center_lon(self) -> float:
        return (self.left + self.right) / 2

    @property
    def center_lat(self) -> float:
        return (self.top + self.bottom) / 2


class GridUpdateResult(BaseModel):
    """Summary of one grid rebuild."""

    reference_timestamp: int
    density_cells: dict[int, int] = Field(default_factory=dict)
    diversity_cells: dict[int, int] = Field(default_factory=dict)
    total_alerts: int = 0

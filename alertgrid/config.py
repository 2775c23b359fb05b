"""Application configuration from environment variables."""

import json
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from alertgrid.schemas.grid import DEFAULT_TIME_WINDOWS, BoundingBox, TimeWindow


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///alerts.sqlite",
        description="Alert store connection URL",
    )

    # Ingestion area, used for the map center in the metadata table
    waze_area_top: float = Field(description="Northern edge of the ingestion area")
    waze_area_bottom: float = Field(description="Southern edge of the ingestion area")
    waze_area_left: float = Field(description="Western edge of the ingestion area")
    waze_area_right: float = Field(description="Eastern edge of the ingestion area")

    # Grid generation
    time_windows: list[TimeWindow] = Field(
        default_factory=lambda: [w.model_copy() for w in DEFAULT_TIME_WINDOWS],
        description="Recency buckets, most recent first (JSON array)",
    )
    diversity_radii: Annotated[list[float], NoDecode] = Field(
        default=[0.0001, 0.0005, 0.001, 0.002],
        description="Neighborhood radii in degrees, one radius group each",
    )
    precision_min: int = Field(default=0, ge=0, description="Coarsest precision level")
    precision_max: int = Field(default=5, ge=0, le=9, description="Finest precision level")

    # Application
    debug: bool = Field(default=False, description="Echo SQL statements")
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("diversity_radii", mode="before")
    @classmethod
    def parse_diversity_radii(cls, v: str | list | None) -> list:
        """Parse radii from a JSON array, a comma-separated string or a list."""
        if v is None:
            return [0.0001, 0.0005, 0.001, 0.002]
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [float(r) for r in v.split(",") if r.strip()]
        return v

    @field_validator("diversity_radii")
    @classmethod
    def check_diversity_radii(cls, v: list[float]) -> list[float]:
        if any(r < 0 for r in v):
            raise ValueError("diversity radii must be non-negative")
        return v

    @field_validator("time_windows")
    @classmethod
    def check_time_windows(cls, v: list[TimeWindow]) -> list[TimeWindow]:
        """Window ids must be 0..n-1 in list order, most recent first."""
        if not v:
            raise ValueError("at least one time window is required")
        for index, window in enumerate(v):
            if window.id != index:
                raise ValueError(
                    f"time window ids must be consecutive from 0, got {window.id} at position {index}"
                )
        return v

    @model_validator(mode="after")
    def check_precision(self) -> "Settings":
        if self.precision_min > self.precision_max:
            raise ValueError(
                f"precision_min ({self.precision_min}) must not exceed "
                f"precision_max ({self.precision_max})"
            )
        return self

    @property
    def area(self) -> BoundingBox:
        """Configured ingestion bounding box."""
        return BoundingBox(
            top=self.waze_area_top,
            bottom=self.waze_area_bottom,
            left=self.waze_area_left,
            right=self.waze_area_right,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

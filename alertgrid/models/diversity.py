"""Temporal diversity grid model."""

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from alertgrid.database import Base


class DiversityGridCell(Base):
    """Number of distinct time windows seen around one cell for one radius group."""

    __tablename__ = "temporal_diversity_grids"

    radius_group_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    level: Mapped[int] = mapped_column(Integer, primary_key=True)
    lon_scaled: Mapped[int] = mapped_column(Integer, primary_key=True)
    lat_scaled: Mapped[int] = mapped_column(Integer, primary_key=True)
    diversity_score: Mapped[int] = mapped_column(Integer, nullable=False)

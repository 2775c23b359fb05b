"""Density grid model for heatmap intensities."""

from sqlalchemy import Integer
from sqlalchemy.orm import Mapped, mapped_column

from alertgrid.database import Base


class DensityGridCell(Base):
    """Log-normalized report intensity for one cell of one time window."""

    __tablename__ = "density_grids"

    time_window_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    level: Mapped[int] = mapped_column(Integer, primary_key=True)
    lon_scaled: Mapped[int] = mapped_column(Integer, primary_key=True)
    lat_scaled: Mapped[int] = mapped_column(Integer, primary_key=True)
    # 1-255, empty cells are not stored
    density: Mapped[int] = mapped_column(Integer, nullable=False)

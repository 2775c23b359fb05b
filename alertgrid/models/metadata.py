"""Grid metadata model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from alertgrid.database import Base

LAST_UPDATED_KEY = "last_updated"
CENTER_LON_KEY = "center_lon"
CENTER_LAT_KEY = "center_lat"
TOTAL_ALERTS_KEY = "total_alerts"


class GridMetadata(Base):
    """Key-value summary written alongside each grid rebuild."""

    __tablename__ = "metadata"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(String, nullable=False)

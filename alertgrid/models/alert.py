"""Alert model for ingested police-alert reports."""

from sqlalchemy import BigInteger, Double, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from alertgrid.database import Base


class Alert(Base):
    """A unique geotagged report, written by the ingestion process.

    The grid builder only reads this table.
    """

    __tablename__ = "alerts"

    uuid: Mapped[str] = mapped_column(String, primary_key=True)
    # Publication time in epoch milliseconds
    pub_millis: Mapped[int | None] = mapped_column("pubMillis", BigInteger, index=True)

    # Position
    latitude: Mapped[float | None] = mapped_column(Double)
    longitude: Mapped[float | None] = mapped_column(Double)

    confidence: Mapped[int | None] = mapped_column(Integer)
    reliability: Mapped[int | None] = mapped_column(Integer)

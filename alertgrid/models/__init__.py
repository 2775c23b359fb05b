"""SQLAlchemy ORM models."""

from alertgrid.models.alert import Alert
from alertgrid.models.density import DensityGridCell
from alertgrid.models.diversity import DiversityGridCell
from alertgrid.models.metadata import GridMetadata

__all__ = [
    "Alert",
    "DensityGridCell",
    "DiversityGridCell",
    "GridMetadata",
]

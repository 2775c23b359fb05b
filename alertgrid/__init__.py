"""Spatial aggregate grid builder for geotagged alert reports."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("alertgrid")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

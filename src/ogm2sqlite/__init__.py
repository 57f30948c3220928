"""ogm2sqlite - Convert harvested geospatial metadata into a searchable SQLite file."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("ogm2sqlite")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = ["__version__"]

"""Feature detection for the SQLite library linked into the interpreter."""

import sqlite3

from sqlalchemy import Connection

from ogm2sqlite.models.enums import BoundsKind

# jsonb() and jsonb_extract() arrived in SQLite 3.45.
SQLITE_HAS_JSONB = sqlite3.sqlite_version_info >= (3, 45, 0)
# The -> operator arrived in SQLite 3.38.
SQLITE_HAS_JSON_ARROW = sqlite3.sqlite_version_info >= (3, 38, 0)


def compile_options(connection: Connection) -> set[str]:
    return set(connection.exec_driver_sql("PRAGMA compile_options").scalars().all())


def has_geopoly(connection: Connection) -> bool:
    return "ENABLE_GEOPOLY" in compile_options(connection)


def preferred_bounds_kind(connection: Connection) -> BoundsKind:
    """Use geopoly polygons where available, otherwise an rtree of boxes."""
    return BoundsKind.GEOPOLY if has_geopoly(connection) else BoundsKind.RTREE

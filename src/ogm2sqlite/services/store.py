"""Document store service for persisting canonical records to SQLite.

Each record is written to three tables that share the record id:

- documents: the canonical record as a JSON payload (SQLModel table)
- bounds: the record's bounding polygon (geopoly or rtree virtual table)
- fulltext: the flattened text projection (fts5 virtual table)

All three writes for a record happen in one transaction using bound
parameters, so a record is either fully present or absent.
"""

from collections.abc import Mapping
from typing import Any

import structlog
from sqlalchemy import Connection, Engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel

from ogm2sqlite.errors import SchemaError, StoreError
from ogm2sqlite.models.enums import BoundsKind
from ogm2sqlite.models.records import BoundingBox, FulltextRecord, SpatialBound
from ogm2sqlite.models.tables import DocumentRecord
from ogm2sqlite.sqlite_features import preferred_bounds_kind

DOCUMENTS_TABLE = "documents"
BOUNDS_TABLE = "bounds"
FULLTEXT_TABLE = "fulltext"
TABLES = (DOCUMENTS_TABLE, BOUNDS_TABLE, FULLTEXT_TABLE)

_BOUNDS_DDL = {
    BoundsKind.GEOPOLY: f"CREATE VIRTUAL TABLE {BOUNDS_TABLE} USING geopoly(id)",
    BoundsKind.RTREE: f"CREATE VIRTUAL TABLE {BOUNDS_TABLE} USING rtree(pk, min_x, max_x, min_y, max_y, +id)",
}

_BOUNDS_INSERT = {
    BoundsKind.GEOPOLY: text(f"INSERT INTO {BOUNDS_TABLE} (_shape, id) VALUES (geopoly_ccw(:shape), :id)"),
    BoundsKind.RTREE: text(
        f"INSERT INTO {BOUNDS_TABLE} (min_x, max_x, min_y, max_y, id) "
        "VALUES (:min_x, :max_x, :min_y, :max_y, :id)"
    ),
}

_BOUNDS_INTERSECT = {
    BoundsKind.GEOPOLY: text(f"SELECT id FROM {BOUNDS_TABLE} WHERE geopoly_overlap(_shape, :shape) ORDER BY id"),
    BoundsKind.RTREE: text(
        f"SELECT id FROM {BOUNDS_TABLE} "
        "WHERE min_x <= :east AND max_x >= :west AND min_y <= :north AND max_y >= :south ORDER BY id"
    ),
}

_FULLTEXT_DDL = f"CREATE VIRTUAL TABLE {FULLTEXT_TABLE} USING fts5({', '.join(FulltextRecord.COLUMNS)})"
_FULLTEXT_INSERT = text(
    f"INSERT INTO {FULLTEXT_TABLE} ({', '.join(FulltextRecord.COLUMNS)}) "
    f"VALUES ({', '.join(':' + column for column in FulltextRecord.COLUMNS)})"
)
_FULLTEXT_SEARCH = text(f"SELECT id FROM {FULLTEXT_TABLE} WHERE {FULLTEXT_TABLE} MATCH :query ORDER BY rank LIMIT :limit")

_TABLE_EXISTS = text("SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = :name")


class DocumentStore:
    """Persists canonical records to the documents, bounds and fulltext tables.

    Accepts an Engine via dependency injection to support both file-backed
    and in-memory databases for testing.
    """

    def __init__(
        self,
        engine: Engine,
        bounds_kind: BoundsKind | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._engine = engine
        self._bounds_kind = bounds_kind
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def bounds_kind(self) -> BoundsKind:
        """Kind of spatial table backing bounds, detected on first use."""
        if self._bounds_kind is None:
            with self._engine.connect() as conn:
                self._bounds_kind = self._detect_bounds_kind(conn)
        return self._bounds_kind

    def ensure_schema(self) -> None:
        """Create any of the documents, bounds and fulltext tables that are missing.

        Raises:
            SchemaError: If a table cannot be created.
        """
        try:
            with self._engine.begin() as conn:
                if not self._table_exists(conn, DOCUMENTS_TABLE):
                    SQLModel.metadata.create_all(conn, tables=[DocumentRecord.__table__])
                    self._logger.info("table_created", table=DOCUMENTS_TABLE)
                if not self._table_exists(conn, BOUNDS_TABLE):
                    kind = self._bounds_kind or preferred_bounds_kind(conn)
                    conn.exec_driver_sql(_BOUNDS_DDL[kind])
                    self._bounds_kind = kind
                    self._logger.info("table_created", table=BOUNDS_TABLE, kind=kind.value)
                if not self._table_exists(conn, FULLTEXT_TABLE):
                    conn.exec_driver_sql(_FULLTEXT_DDL)
                    self._logger.info("table_created", table=FULLTEXT_TABLE)
                if self._bounds_kind is None:
                    self._bounds_kind = self._detect_bounds_kind(conn)
        except SQLAlchemyError as e:
            raise SchemaError(f"failed to create schema: {e}") from e
        self._logger.info("document_store_initialized", bounds_kind=self._bounds_kind.value)

    def insert(
        self,
        record_id: str,
        record: Mapping[str, Any],
        bound: SpatialBound,
        fulltext: FulltextRecord,
    ) -> None:
        """Write the document, bounds and fulltext rows for one record.

        Args:
            record_id: Identifier shared by the three rows.
            record: The canonical record stored as the JSON payload.
            bound: The record's bounding polygon.
            fulltext: The record's fulltext projection.

        Raises:
            StoreError: If any write fails. Nothing is written in that case.
        """
        if bound.record_id != record_id or fulltext.id != record_id:
            raise StoreError(f"identifier mismatch for record {record_id}")

        bounds_kind = self.bounds_kind
        with Session(self._engine) as session:
            try:
                session.add(DocumentRecord(id=record_id, data=dict(record)))
                session.flush()
                connection = session.connection()
                connection.execute(_BOUNDS_INSERT[bounds_kind], self._bounds_params(bounds_kind, bound))
                connection.execute(_FULLTEXT_INSERT, fulltext.model_dump())
                session.commit()
            # the driver raises binding and encoding errors unwrapped
            except (SQLAlchemyError, UnicodeError, TypeError, ValueError) as e:
                session.rollback()
                raise StoreError(str(e)) from e

        self._logger.debug("document_saved", record_id=record_id)

    def get_document(self, record_id: str) -> dict[str, Any] | None:
        """Retrieve the JSON payload of a document by id.

        Returns:
            The stored canonical record, or None if not found.
        """
        with Session(self._engine) as session:
            record = session.get(DocumentRecord, record_id)
            if record is None:
                return None
            return dict(record.data)

    def count(self, table: str) -> int:
        """Number of rows in one of the store's tables."""
        if table not in TABLES:
            raise ValueError(f"unknown table: {table}")
        with self._engine.connect() as conn:
            return conn.exec_driver_sql(f"SELECT count(*) FROM {table}").scalar_one()

    def search_fulltext(self, query: str, limit: int = 10) -> list[str]:
        """Return ids of documents matching an fts5 query, best match first."""
        with self._engine.connect() as conn:
            return list(conn.execute(_FULLTEXT_SEARCH, {"query": query, "limit": limit}).scalars())

    def find_intersecting(self, west: float, south: float, east: float, north: float) -> list[str]:
        """Return ids of documents whose bounds overlap the given box.

        Raises:
            ValueError: If the box is inverted or crosses the antimeridian.
        """
        box = BoundingBox(west=west, south=south, east=east, north=north)
        bounds_kind = self.bounds_kind
        if bounds_kind is BoundsKind.GEOPOLY:
            params: dict[str, Any] = {"shape": SpatialBound(record_id="query", box=box).to_geopoly()}
        else:
            params = {"west": west, "south": south, "east": east, "north": north}
        with self._engine.connect() as conn:
            return list(conn.execute(_BOUNDS_INTERSECT[bounds_kind], params).scalars())

    def _bounds_params(self, bounds_kind: BoundsKind, bound: SpatialBound) -> dict[str, Any]:
        if bounds_kind is BoundsKind.GEOPOLY:
            return {"shape": bound.to_geopoly(), "id": bound.record_id}
        box = bound.box
        return {
            "min_x": box.west,
            "max_x": box.east,
            "min_y": box.south,
            "max_y": box.north,
            "id": bound.record_id,
        }

    def _detect_bounds_kind(self, conn: Connection) -> BoundsKind:
        """Read the kind of an existing bounds table from its DDL."""
        sql = conn.execute(
            text("SELECT sql FROM sqlite_master WHERE type = 'table' AND name = :name"),
            {"name": BOUNDS_TABLE},
        ).scalar_one_or_none()
        if sql is not None and "rtree" in sql.lower():
            return BoundsKind.RTREE
        if sql is not None:
            return BoundsKind.GEOPOLY
        return preferred_bounds_kind(conn)

    def _table_exists(self, conn: Connection, name: str) -> bool:
        return conn.execute(_TABLE_EXISTS, {"name": name}).first() is not None

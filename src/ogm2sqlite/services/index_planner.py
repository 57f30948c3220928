"""Index planner for the documents table.

Indexes are expressions over the JSON payload and are derived data: they can
be dropped and rebuilt from the documents table at any time. They are built
once, after bulk loading, because maintaining them during inserts is slower.

Two extraction modes are used. jsonb_extract keeps multi-valued fields as
JSON arrays, which suits exact filtering. json_extract returns the text form
of the same value, which GROUP BY can count on. Each facet pair therefore
gets a filter index and a count index.

Three-facet composite indexes are not generated: their number grows as the
cube of the facet count and the database size balloons.
"""

from collections.abc import Sequence
from itertools import permutations

import structlog
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import Connection, Engine, text
from sqlalchemy.exc import SQLAlchemyError

from ogm2sqlite.errors import IndexBuildError
from ogm2sqlite.models.enums import ExtractionMode
from ogm2sqlite.models.fields import FACET_FIELDS, INDEX_FIELDS
from ogm2sqlite.services.store import DOCUMENTS_TABLE
from ogm2sqlite.sqlite_features import SQLITE_HAS_JSON_ARROW, SQLITE_HAS_JSONB


class IndexSpec(BaseModel):
    """A named expression index on the documents table."""

    name: str
    expressions: tuple[str, ...] = Field(min_length=1)

    model_config = ConfigDict(frozen=True, extra="forbid")

    def create_sql(self) -> str:
        return f"CREATE INDEX IF NOT EXISTS {self.name} ON {DOCUMENTS_TABLE}({', '.join(self.expressions)})"

    def drop_sql(self) -> str:
        return f"DROP INDEX IF EXISTS {self.name}"


def extract(field: str, mode: ExtractionMode, binary_json: bool = SQLITE_HAS_JSONB) -> str:
    """SQL expression extracting a field from the documents payload.

    Args:
        field: Canonical field name. Must be a plain identifier.
        mode: Which extraction function to use.
        binary_json: Whether the SQLite library supports jsonb_extract.
    """
    if not field.isidentifier():
        raise ValueError(f"invalid field name: {field!r}")
    path = f"'$.{field}'"
    if mode is ExtractionMode.TEXT:
        return f"json_extract(data, {path})"
    if binary_json:
        return f"jsonb_extract(data, {path})"
    if SQLITE_HAS_JSON_ARROW:
        return f"(data -> {path})"
    return f"json_extract(data, {path})"


def plan_indexes(
    index_fields: Sequence[str] = INDEX_FIELDS,
    facet_fields: Sequence[str] = FACET_FIELDS,
    binary_json: bool = SQLITE_HAS_JSONB,
) -> list[IndexSpec]:
    """List the indexes to create on the documents table.

    One single-field index per index field, then for every ordered pair of
    distinct facet fields (a, b) a filter index on (a, b) and a count index
    on (a, b) with b extracted as text. Both orders of each pair are planned
    so either field can lead a query.

    Raises:
        ValueError: If a facet field is not also an index field.
    """
    unknown = [field for field in facet_fields if field not in index_fields]
    if unknown:
        raise ValueError(f"facet fields must be index fields: {unknown}")

    specs = [
        IndexSpec(
            name=f"{DOCUMENTS_TABLE}_{field}_idx",
            expressions=(extract(field, ExtractionMode.BINARY, binary_json),),
        )
        for field in index_fields
    ]
    for first, second in permutations(facet_fields, 2):
        specs.append(
            IndexSpec(
                name=f"{DOCUMENTS_TABLE}_{first}_{second}_idx",
                expressions=(
                    extract(first, ExtractionMode.BINARY, binary_json),
                    extract(second, ExtractionMode.BINARY, binary_json),
                ),
            )
        )
        specs.append(
            IndexSpec(
                name=f"{DOCUMENTS_TABLE}_{first}_{second}_count_idx",
                expressions=(
                    extract(first, ExtractionMode.BINARY, binary_json),
                    extract(second, ExtractionMode.TEXT, binary_json),
                ),
            )
        )
    return specs


class IndexPlanner:
    """Creates and drops the planned indexes on the documents table."""

    def __init__(
        self,
        engine: Engine,
        index_fields: Sequence[str] = INDEX_FIELDS,
        facet_fields: Sequence[str] = FACET_FIELDS,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._engine = engine
        self._specs = plan_indexes(index_fields, facet_fields)
        self._logger = logger or structlog.get_logger(__name__)

    @property
    def specs(self) -> list[IndexSpec]:
        return list(self._specs)

    def build_indexes(self) -> None:
        """Create every planned index that does not exist yet.

        Raises:
            IndexBuildError: If an index cannot be created.
        """
        self._logger.info("index_build_started", index_count=len(self._specs))
        try:
            with self._engine.begin() as conn:
                for spec in self._specs:
                    conn.exec_driver_sql(spec.create_sql())
                    self._logger.info("index_created", index=spec.name)
        except SQLAlchemyError as e:
            raise IndexBuildError(f"failed to create indexes: {e}") from e
        self._logger.info("index_build_completed", index_count=len(self._specs))

    def drop_indexes(self) -> None:
        """Drop every planned index.

        Raises:
            IndexBuildError: If an index cannot be dropped.
        """
        try:
            with self._engine.begin() as conn:
                for spec in self._specs:
                    conn.exec_driver_sql(spec.drop_sql())
        except SQLAlchemyError as e:
            raise IndexBuildError(f"failed to drop indexes: {e}") from e
        self._logger.info("indexes_dropped", index_count=len(self._specs))

    def rebuild_indexes(self) -> None:
        self.drop_indexes()
        self.build_indexes()

    def existing_indexes(self) -> set[str]:
        """Names of the indexes currently defined on the documents table."""
        with self._engine.connect() as conn:
            return self._index_names(conn)

    def _index_names(self, conn: Connection) -> set[str]:
        rows = conn.execute(
            text("SELECT name FROM sqlite_master WHERE type = 'index' AND tbl_name = :table AND sql IS NOT NULL"),
            {"table": DOCUMENTS_TABLE},
        )
        return set(rows.scalars())

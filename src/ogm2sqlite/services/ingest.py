"""Ingest service that orchestrates the full conversion pipeline.

Each harvested record is mapped to the canonical vocabulary, sanitized, given
a bounding polygon and a fulltext projection, then written to the store. A
record that fails at any step is logged and skipped without touching the
store; the run continues with the next record. Indexes are built once, after
the last record.
"""

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel, Field

from ogm2sqlite.errors import MappingError, RecordError
from ogm2sqlite.models.fields import BBOX_FIELD, ID_FIELD
from ogm2sqlite.services.geometry import extract_bounds
from ogm2sqlite.services.index_planner import IndexPlanner
from ogm2sqlite.services.normalizer import normalize
from ogm2sqlite.services.projector import project
from ogm2sqlite.services.store import DocumentStore


class IngestResult(BaseModel):
    """Result of a conversion run with statistics."""

    records_seen: int = Field(ge=0)
    records_inserted: int = Field(ge=0)
    records_skipped: int = Field(ge=0)
    errors: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class IngestService:
    """Orchestrates conversion of harvested records into the store.

    All dependencies are injected via constructor for testability.
    """

    def __init__(
        self,
        store: DocumentStore,
        index_planner: IndexPlanner,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._store = store
        self._index_planner = index_planner
        self._logger = logger or structlog.get_logger(__name__)

    def __enter__(self) -> "IngestService":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def index_planner(self) -> IndexPlanner:
        return self._index_planner

    def close(self) -> None:
        """Release the database connections held by the store."""
        self._store.engine.dispose()

    def convert(self, records: Iterable[Mapping[str, Any]]) -> IngestResult:
        """Ingest every record, then build the document indexes.

        Args:
            records: Raw harvested records, consumed once in order.

        Returns:
            IngestResult with processing statistics.

        Raises:
            SchemaError: If the store tables cannot be created.
            IndexBuildError: If the indexes cannot be created.
        """
        self._logger.info("ingest_started")
        self._store.ensure_schema()

        records_seen = 0
        records_inserted = 0
        errors: list[str] = []

        for raw in records:
            records_seen += 1
            record_id = _record_id(raw)
            try:
                self.ingest_record(raw)
            except RecordError as e:
                self._logger.warning("record_skipped", record_id=record_id, error=str(e))
                errors.append(f"{record_id}: {e}")
            else:
                records_inserted += 1

        self._logger.info(
            "ingest_completed",
            records_seen=records_seen,
            records_inserted=records_inserted,
            records_skipped=len(errors),
        )

        self._index_planner.build_indexes()

        return IngestResult(
            records_seen=records_seen,
            records_inserted=records_inserted,
            records_skipped=len(errors),
            errors=errors,
        )

    def ingest_record(self, raw: Mapping[str, Any]) -> str:
        """Convert and store a single raw record.

        Returns:
            The identifier of the stored record.

        Raises:
            RecordError: If the record cannot be mapped, has a malformed
                bounding box, or is rejected by the store.
        """
        record = normalize(raw)
        record_id = record.get(ID_FIELD)
        if record_id is None or not str(record_id).strip():
            raise MappingError("record has no id")
        if not isinstance(record_id, (str, int)):
            raise MappingError(f"record id must be a string, got {type(record_id).__name__}")
        record_id = str(record_id)

        self._logger.debug("record_processing_started", record_id=record_id)

        bound = extract_bounds(record_id, record.get(BBOX_FIELD))
        fulltext = project(record)
        self._store.insert(record_id, record, bound, fulltext)

        return record_id


def _record_id(raw: Any) -> str | None:
    if isinstance(raw, Mapping) and raw.get(ID_FIELD) is not None:
        return str(raw[ID_FIELD])
    return None

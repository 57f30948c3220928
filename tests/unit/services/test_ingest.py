"""Unit tests for the IngestService."""

from collections.abc import Mapping
from typing import Any

import pytest

from ogm2sqlite.errors import IndexBuildError, SchemaError, StoreError
from ogm2sqlite.models.records import FulltextRecord, SpatialBound
from ogm2sqlite.services.ingest import IngestResult, IngestService


class FakeDocumentStore:
    """In-memory fake DocumentStore for testing."""

    def __init__(self, fail_ids: set[str] | None = None, fail_schema: bool = False) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.bounds: dict[str, SpatialBound] = {}
        self.fulltext: dict[str, FulltextRecord] = {}
        self.schema_calls = 0
        self._fail_ids = fail_ids or set()
        self._fail_schema = fail_schema

    def ensure_schema(self) -> None:
        if self._fail_schema:
            raise SchemaError("disk full")
        self.schema_calls += 1

    def insert(
        self,
        record_id: str,
        record: Mapping[str, Any],
        bound: SpatialBound,
        fulltext: FulltextRecord,
    ) -> None:
        if record_id in self._fail_ids:
            raise StoreError("constraint failed")
        self.documents[record_id] = dict(record)
        self.bounds[record_id] = bound
        self.fulltext[record_id] = fulltext


class FakeIndexPlanner:
    """Fake IndexPlanner counting build calls."""

    def __init__(self, fail: bool = False) -> None:
        self.build_calls = 0
        self._fail = fail

    def build_indexes(self) -> None:
        if self._fail:
            raise IndexBuildError("no such function: jsonb_extract")
        self.build_calls += 1


def _make_raw(record_id: str | None, bbox: Any = "ENVELOPE(-1, 1, 1, -1)", **fields) -> dict[str, Any]:
    raw: dict[str, Any] = {"dcat_bbox": bbox, "dct_title_s": f"Title of {record_id}"}
    if record_id is not None:
        raw["id"] = record_id
    raw.update(fields)
    return raw


@pytest.fixture
def fake_store() -> FakeDocumentStore:
    return FakeDocumentStore()


@pytest.fixture
def fake_planner() -> FakeIndexPlanner:
    return FakeIndexPlanner()


@pytest.fixture
def service(fake_store: FakeDocumentStore, fake_planner: FakeIndexPlanner) -> IngestService:
    return IngestService(store=fake_store, index_planner=fake_planner)  # type: ignore[arg-type]


class TestIngestServiceConvert:
    """Tests for a full conversion run."""

    def test_inserts_well_formed_records(
        self, service: IngestService, fake_store: FakeDocumentStore, fake_planner: FakeIndexPlanner
    ) -> None:
        result = service.convert([_make_raw("a"), _make_raw("b")])

        assert result == IngestResult(records_seen=2, records_inserted=2, records_skipped=0)
        assert set(fake_store.documents) == {"a", "b"}
        assert fake_store.schema_calls == 1
        assert fake_planner.build_calls == 1

    def test_writes_canonical_record_and_projections(
        self, service: IngestService, fake_store: FakeDocumentStore
    ) -> None:
        service.convert([_make_raw("a", dct_subject_sm=["Rivers", "Lakes"], vendor_x="kept")])

        document = fake_store.documents["a"]
        assert document["title"] == "Title of a"
        assert document["vendor_x"] == "kept"
        assert fake_store.fulltext["a"].subject == "Rivers, Lakes"
        assert fake_store.bounds["a"].box.north == 1.0

    def test_skips_record_with_malformed_bbox(
        self, service: IngestService, fake_store: FakeDocumentStore, fake_planner: FakeIndexPlanner
    ) -> None:
        result = service.convert([_make_raw("a"), _make_raw("bad", bbox=[1, 2, 3]), _make_raw("c")])

        assert result.records_inserted == 2
        assert result.records_skipped == 1
        assert result.errors[0].startswith("bad: ")
        assert "bad" not in fake_store.documents
        assert "bad" not in fake_store.fulltext
        assert "bad" not in fake_store.bounds
        assert fake_planner.build_calls == 1

    def test_skips_record_crossing_antimeridian(self, service: IngestService, fake_store: FakeDocumentStore) -> None:
        result = service.convert([_make_raw("fiji", bbox="ENVELOPE(177, -178, -12, -21)"), _make_raw("a")])

        assert result.records_inserted == 1
        assert result.records_skipped == 1
        assert result.errors[0].startswith("fiji: ")
        assert "antimeridian" in result.errors[0]
        assert "fiji" not in fake_store.documents

    def test_skips_record_without_bbox(self, service: IngestService) -> None:
        raw = _make_raw("a")
        del raw["dcat_bbox"]

        result = service.convert([raw])

        assert result.records_skipped == 1

    def test_skips_record_without_id(self, service: IngestService) -> None:
        result = service.convert([_make_raw(None)])

        assert result.records_skipped == 1
        assert result.errors == ["None: record has no id"]

    def test_skips_record_rejected_by_store(self) -> None:
        store = FakeDocumentStore(fail_ids={"b"})
        planner = FakeIndexPlanner()
        service = IngestService(store=store, index_planner=planner)  # type: ignore[arg-type]

        result = service.convert([_make_raw("a"), _make_raw("b"), _make_raw("c")])

        assert result.records_inserted == 2
        assert set(store.documents) == {"a", "c"}
        assert planner.build_calls == 1

    def test_builds_indexes_for_empty_input(self, service: IngestService, fake_planner: FakeIndexPlanner) -> None:
        result = service.convert([])

        assert result.records_seen == 0
        assert fake_planner.build_calls == 1

    def test_consumes_generators(self, service: IngestService, fake_store: FakeDocumentStore) -> None:
        result = service.convert(_make_raw(str(i)) for i in range(5))

        assert result.records_inserted == 5
        assert len(fake_store.documents) == 5

    def test_schema_errors_are_fatal(self, fake_planner: FakeIndexPlanner) -> None:
        service = IngestService(store=FakeDocumentStore(fail_schema=True), index_planner=fake_planner)  # type: ignore[arg-type]

        with pytest.raises(SchemaError):
            service.convert([_make_raw("a")])
        assert fake_planner.build_calls == 0

    def test_index_errors_are_fatal(self, fake_store: FakeDocumentStore) -> None:
        service = IngestService(store=fake_store, index_planner=FakeIndexPlanner(fail=True))  # type: ignore[arg-type]

        with pytest.raises(IndexBuildError):
            service.convert([_make_raw("a")])


class TestIngestServiceRecord:
    """Tests for single record ingestion."""

    def test_returns_record_id(self, service: IngestService) -> None:
        assert service.ingest_record(_make_raw("a")) == "a"

    def test_sanitizes_before_storing(self, service: IngestService, fake_store: FakeDocumentStore) -> None:
        service.ingest_record(_make_raw("a", dct_description_sm=["It's a map"]))

        assert fake_store.documents["a"]["description"] == ["Its a map"]
        assert fake_store.fulltext["a"].description == "Its a map"

"""Tests for the service factory module."""

from pathlib import Path

from ogm2sqlite.services.factory import (
    create_engine_from_path,
    create_harvester,
    create_ingest_service,
    create_test_ingest_service,
)
from ogm2sqlite.services.harvester import RecordHarvester
from ogm2sqlite.services.index_planner import IndexPlanner
from ogm2sqlite.services.ingest import IngestService
from ogm2sqlite.services.store import DocumentStore


class TestCreateIngestService:
    """Tests for create_ingest_service factory."""

    def test_creates_ingest_service_instance(self, tmp_path: Path) -> None:
        with create_ingest_service(tmp_path / "ogm.db") as service:
            assert isinstance(service, IngestService)
            assert isinstance(service.store, DocumentStore)
            assert isinstance(service.index_planner, IndexPlanner)

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "out" / "ogm.db"

        create_ingest_service(db_path).close()

        assert db_path.parent.exists()

    def test_store_and_planner_share_engine(self, tmp_path: Path) -> None:
        with create_ingest_service(tmp_path / "ogm.db") as service:
            service.store.ensure_schema()
            service.index_planner.build_indexes()

        assert (tmp_path / "ogm.db").exists()


class TestCreateTestIngestService:
    """Tests for create_test_ingest_service factory."""

    def test_services_are_isolated(self) -> None:
        first = create_test_ingest_service()
        second = create_test_ingest_service()

        first.convert([{"id": "a", "dcat_bbox": [0, 0, 1, 1]}])
        second.store.ensure_schema()

        assert first.store.count("documents") == 1
        assert second.store.count("documents") == 0


def test_memory_engine_keeps_state_between_connections() -> None:
    engine = create_engine_from_path(":memory:")
    with engine.begin() as conn:
        conn.exec_driver_sql("CREATE TABLE t (x)")
        conn.exec_driver_sql("INSERT INTO t VALUES (1)")

    with engine.connect() as conn:
        assert conn.exec_driver_sql("SELECT count(*) FROM t").scalar_one() == 1


def test_create_harvester(tmp_path: Path) -> None:
    harvester = create_harvester(tmp_path, schema_version="all")

    assert isinstance(harvester, RecordHarvester)
    assert list(harvester.docs_to_index()) == []

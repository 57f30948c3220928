"""Factory functions for creating and wiring the ingest pipeline.

Provides a production factory backed by a database file and a test factory
that uses an in-memory database for fast, isolated testing.
"""

from pathlib import Path

import structlog
from sqlalchemy import Engine, create_engine
from sqlalchemy.pool import StaticPool

from ogm2sqlite.services.harvester import DEFAULT_SCHEMA_VERSION, RecordHarvester
from ogm2sqlite.services.index_planner import IndexPlanner
from ogm2sqlite.services.ingest import IngestService
from ogm2sqlite.services.store import DocumentStore

MEMORY_DB = ":memory:"


def create_engine_from_path(db_path: str | Path) -> Engine:
    """Create a SQLAlchemy engine for the given database path.

    Args:
        db_path: Path to SQLite database file, or ":memory:" for in-memory.
            Missing parent directories are created.

    Returns:
        Engine instance using the stdlib sqlite3 driver.
    """
    if str(db_path) == MEMORY_DB:
        # A single shared connection keeps the in-memory database alive
        # across sessions.
        return create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(f"sqlite:///{path}")


def create_ingest_service(db_path: str | Path) -> IngestService:
    """Create a production IngestService writing to a database file.

    Args:
        db_path: Output database file. Existing tables are reused.

    Returns:
        Configured IngestService ready for use.
    """
    logger = structlog.get_logger(__name__)

    engine = create_engine_from_path(db_path)
    store = DocumentStore(engine=engine, logger=logger)
    index_planner = IndexPlanner(engine=engine, logger=logger)

    return IngestService(store=store, index_planner=index_planner, logger=logger)


def create_test_ingest_service() -> IngestService:
    """Create an IngestService with in-memory storage for testing.

    Each call creates an independent database, so tests don't interfere.
    """
    logger = structlog.get_logger(__name__)

    engine = create_engine_from_path(MEMORY_DB)
    store = DocumentStore(engine=engine, logger=logger)
    index_planner = IndexPlanner(engine=engine, logger=logger)

    return IngestService(store=store, index_planner=index_planner, logger=logger)


def create_harvester(ogm_path: str | Path, schema_version: str = DEFAULT_SCHEMA_VERSION) -> RecordHarvester:
    """Create a RecordHarvester for a local corpus checkout."""
    return RecordHarvester(
        ogm_path=Path(ogm_path),
        schema_version=schema_version,
        logger=structlog.get_logger(__name__),
    )

"""Conversion CLI.

Provides commands to convert a harvested OpenGeoMetadata corpus into a single
SQLite file with structured, fulltext and spatial search, to rebuild its
indexes, and to run a quick fulltext query against it.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, TextIO

import structlog
import typer
from sqlalchemy.exc import SQLAlchemyError

from ogm2sqlite.config import Settings, get_settings
from ogm2sqlite.errors import Ogm2SqliteError
from ogm2sqlite.services.factory import create_engine_from_path, create_harvester, create_ingest_service
from ogm2sqlite.services.index_planner import IndexPlanner
from ogm2sqlite.services.store import DocumentStore


@contextmanager
def configure_logging(level: str = "INFO", log_file: Optional[Path] = None) -> Iterator[None]:
    """Route structlog output to stderr or a log file, filtered by level.

    A log file is created along with its parent directories and closed on
    exit, after structlog is reset so no logger keeps writing to it.
    """
    sink: TextIO = sys.stderr
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        sink = log_file.open("a", encoding="utf-8")
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=log_file is None and sys.stderr.isatty()),
        ],
        logger_factory=lambda *args: structlog.PrintLogger(file=sink),
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper())),
        context_class=dict,
        cache_logger_on_first_use=False,
    )
    try:
        yield
    finally:
        if log_file is not None:
            structlog.reset_defaults()
            sink.close()


logger = structlog.get_logger(__name__)

app = typer.Typer(
    name="ogm2sqlite",
    help="""Convert harvested geospatial metadata into a searchable SQLite database.

Examples:

  # Convert a local OpenGeoMetadata checkout
  uv run ogm2sqlite convert --ogm-path ./tmp/opengeometadata --db-path ./tmp/ogm.db

  # Rebuild the derived indexes
  uv run ogm2sqlite reindex --db-path ./tmp/ogm.db

  # Fulltext search
  uv run ogm2sqlite search "railroads"
""",
    rich_markup_mode="markdown",
)


def _settings(**overrides: object) -> Settings:
    settings = get_settings()
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return settings
    return Settings(**{**settings.model_dump(), **updates})


@app.command()
def convert(
    ogm_path: Optional[Path] = typer.Option(
        None,
        "--ogm-path",
        "-i",
        help="Directory holding the harvested metadata records",
    ),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db-path",
        "-o",
        help="SQLite database file to create or extend",
    ),
    schema_version: Optional[str] = typer.Option(
        None,
        "--schema-version",
        help="Metadata schema version to ingest ('all' for every record)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Write logs to this file instead of stderr",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Minimum log level",
    ),
) -> None:
    """Convert a metadata corpus into the search database."""
    settings = _settings(
        ogm_path=ogm_path,
        db_path=db_path,
        schema_version=schema_version,
        log_file=log_file,
        log_level=log_level.upper() if log_level else None,
    )
    with configure_logging(settings.log_level, settings.log_file):
        if not settings.ogm_path.is_dir():
            logger.error("directory_not_found", directory=str(settings.ogm_path))
            raise typer.Exit(1)

        harvester = create_harvester(settings.ogm_path, settings.schema_version)
        try:
            with create_ingest_service(settings.db_path) as service:
                result = service.convert(harvester.docs_to_index())
        except Ogm2SqliteError as e:
            logger.error("conversion_failed", error=str(e))
            raise typer.Exit(1)

    typer.echo(
        f"Converted {result.records_inserted} records ({result.records_skipped} skipped) into {settings.db_path}"
    )


@app.command()
def reindex(
    db_path: Optional[Path] = typer.Option(
        None,
        "--db-path",
        "-o",
        help="SQLite database file to reindex",
    ),
) -> None:
    """Drop and rebuild the derived document indexes."""
    settings = _settings(db_path=db_path)
    with configure_logging(settings.log_level, settings.log_file):
        if not settings.db_path.exists():
            logger.error("database_not_found", db_path=str(settings.db_path))
            raise typer.Exit(1)

        engine = create_engine_from_path(settings.db_path)
        try:
            IndexPlanner(engine=engine).rebuild_indexes()
        except Ogm2SqliteError as e:
            logger.error("reindex_failed", error=str(e))
            raise typer.Exit(1)
        finally:
            engine.dispose()

    typer.echo(f"Rebuilt indexes in {settings.db_path}")


@app.command()
def search(
    query: str = typer.Argument(
        ...,
        help="fts5 query",
    ),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db-path",
        "-o",
        help="SQLite database file to search",
    ),
    limit: int = typer.Option(
        10,
        "--limit",
        "-n",
        help="Maximum number of results to return",
    ),
) -> None:
    """Print ids of documents matching a fulltext query."""
    settings = _settings(db_path=db_path)
    with configure_logging(settings.log_level, settings.log_file):
        if not settings.db_path.exists():
            logger.error("database_not_found", db_path=str(settings.db_path))
            raise typer.Exit(1)

        engine = create_engine_from_path(settings.db_path)
        try:
            for record_id in DocumentStore(engine=engine).search_fulltext(query, limit=limit):
                typer.echo(record_id)
        except SQLAlchemyError as e:
            logger.error("search_failed", query=query, error=str(e))
            raise typer.Exit(1)
        finally:
            engine.dispose()


@app.command()
def version() -> None:
    """Show version information."""
    from ogm2sqlite import __version__

    typer.echo(f"ogm2sqlite {__version__}")

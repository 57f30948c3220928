"""Harvester service for reading metadata records from a local corpus checkout."""

import json
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import structlog

from ogm2sqlite.models.fields import SCHEMA_VERSION_FIELD

ALL_SCHEMA_VERSIONS = "all"
DEFAULT_SCHEMA_VERSION = "Aardvark"
_EXCLUDED_FILE_NAMES = frozenset({"layers.json"})


class RecordHarvester:
    """Walks an OpenGeoMetadata-style directory tree and yields raw records.

    Each *.json file holds either one record or a list of records. Records
    whose metadata schema version does not match are filtered out.
    """

    def __init__(
        self,
        ogm_path: Path,
        schema_version: str = DEFAULT_SCHEMA_VERSION,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._ogm_path = ogm_path
        self._schema_version = schema_version
        self._logger = logger or structlog.get_logger(__name__)

    def docs_to_index(self) -> Iterator[dict[str, Any]]:
        """Yield every matching record found under the corpus root.

        Yields:
            Raw records keyed by their original field names.

        Raises:
            FileNotFoundError: If the corpus root does not exist.
            NotADirectoryError: If the corpus root is not a directory.
        """
        if not self._ogm_path.exists():
            raise FileNotFoundError(f"Directory not found: {self._ogm_path}")
        if not self._ogm_path.is_dir():
            raise NotADirectoryError(f"Path is not a directory: {self._ogm_path}")

        self._logger.info(
            "harvest_started",
            ogm_path=str(self._ogm_path),
            schema_version=self._schema_version,
        )

        file_count = 0
        record_count = 0
        for file_path in self._discover_files():
            file_count += 1
            for record in self._read_records(file_path):
                if self._matches_schema_version(record):
                    record_count += 1
                    yield record

        self._logger.info(
            "harvest_completed",
            ogm_path=str(self._ogm_path),
            file_count=file_count,
            record_count=record_count,
        )

    def _discover_files(self) -> list[Path]:
        return sorted(
            file_path
            for file_path in self._ogm_path.rglob("*.json")
            if file_path.is_file() and file_path.name not in _EXCLUDED_FILE_NAMES
        )

    def _read_records(self, file_path: Path) -> list[dict[str, Any]]:
        try:
            content = json.loads(file_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            self._logger.warning("file_read_error", file_path=str(file_path), error=str(e))
            return []

        candidates = content if isinstance(content, list) else [content]
        records = [candidate for candidate in candidates if isinstance(candidate, dict)]
        if len(records) != len(candidates):
            self._logger.warning(
                "non_object_records_ignored",
                file_path=str(file_path),
                ignored=len(candidates) - len(records),
            )
        return records

    def _matches_schema_version(self, record: dict[str, Any]) -> bool:
        if self._schema_version == ALL_SCHEMA_VERSIONS:
            return True
        return record.get(SCHEMA_VERSION_FIELD) == self._schema_version

"""Normalization of harvested records into the canonical vocabulary.

Renaming is a plain table lookup with pass-through, so fields outside the
canonical vocabulary survive unchanged. When two source fields map to the
same canonical name, the one enumerated last in the source record wins.
"""

from collections.abc import Mapping
from typing import Any

from ogm2sqlite.errors import MappingError
from ogm2sqlite.models.fields import FIELD_MAP

_STRIPPED_CHARACTERS = "'"
_STRIP_TABLE = str.maketrans("", "", _STRIPPED_CHARACTERS)


def map_fields(record: Mapping[str, Any], field_map: Mapping[str, str] = FIELD_MAP) -> dict[str, Any]:
    """Rename the keys of a record according to field_map.

    Args:
        record: Raw record keyed by external field names.
        field_map: External name to canonical name lookup table.

    Returns:
        New dict with mapped keys renamed and all other keys unchanged.

    Raises:
        MappingError: If record is not a mapping.
    """
    if not isinstance(record, Mapping):
        raise MappingError(f"expected a mapping, got {type(record).__name__}")
    return {field_map.get(key, key): value for key, value in record.items()}


def sanitize_value(value: Any) -> Any:
    if isinstance(value, str):
        return value.translate(_STRIP_TABLE)
    if isinstance(value, list):
        return [sanitize_value(item) for item in value]
    if isinstance(value, Mapping):
        return {key: sanitize_value(item) for key, item in value.items()}
    return value


def sanitize(record: Mapping[str, Any]) -> dict[str, Any]:
    """Strip single quotes from every string leaf of a record.

    Lists and nested objects are walked recursively; numbers, booleans and
    None are returned as is. Keys are never altered. Idempotent.
    """
    return {key: sanitize_value(value) for key, value in record.items()}


def normalize(record: Mapping[str, Any], field_map: Mapping[str, str] = FIELD_MAP) -> dict[str, Any]:
    """Map then sanitize a raw record into a canonical record."""
    return sanitize(map_fields(record, field_map))

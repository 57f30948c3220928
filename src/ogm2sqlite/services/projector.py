"""Projection of canonical records onto the fixed fulltext columns."""

import json
from collections.abc import Mapping
from typing import Any

from ogm2sqlite.models.fields import FULLTEXT_FIELDS, ID_FIELD
from ogm2sqlite.models.records import FulltextRecord

LIST_SEPARATOR = ", "


def flatten_value(value: Any) -> str:
    """Coerce a record value to a single string for fulltext indexing.

    Lists are joined with ", " (None elements dropped), None becomes an
    empty string, nested objects are written as compact JSON.
    """
    if value is None:
        return ""
    if isinstance(value, list):
        return LIST_SEPARATOR.join(flatten_value(item) for item in value if item is not None)
    if isinstance(value, Mapping):
        return json.dumps(value, separators=(",", ":"), sort_keys=True)
    return str(value)


def project(record: Mapping[str, Any]) -> FulltextRecord:
    """Project a canonical record onto the fulltext column set.

    Every fulltext column is present in the result; fields missing from the
    record come back as empty strings.
    """
    values = {field: flatten_value(record.get(field)) for field in FULLTEXT_FIELDS}
    return FulltextRecord(id=flatten_value(record.get(ID_FIELD)), **values)

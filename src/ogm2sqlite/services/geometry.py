"""Bounding box parsing for the bounds table.

Harvested records carry their extent as a Solr envelope string,
ENVELOPE(W, E, N, S). Plain [W, S, E, N] sequences and "W,S,E,N" strings
are accepted too.
"""

import re
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from ogm2sqlite.errors import GeometryError
from ogm2sqlite.models.records import BoundingBox, SpatialBound

_ENVELOPE_PATTERN = re.compile(r"^\s*ENVELOPE\s*\((?P<body>[^()]*)\)\s*$", re.IGNORECASE)


def parse_bounding_box(value: Any) -> BoundingBox:
    """Parse a bounding box value into a BoundingBox.

    Args:
        value: Envelope string, comma-separated string or four-number sequence.

    Returns:
        The parsed BoundingBox.

    Raises:
        GeometryError: If the value is missing, has the wrong number of
            components, or a component is not a finite number.
    """
    if value is None:
        raise GeometryError("bounding box is missing")

    if isinstance(value, str):
        match = _ENVELOPE_PATTERN.match(value)
        if match:
            west, east, north, south = _to_floats(match.group("body").split(","))
        else:
            west, south, east, north = _to_floats(value.split(","))
    elif isinstance(value, Sequence):
        west, south, east, north = _to_floats(value)
    else:
        raise GeometryError(f"unsupported bounding box type: {type(value).__name__}")

    if east < west:
        raise GeometryError(f"box crosses the antimeridian: {value!r}")

    try:
        return BoundingBox(west=west, south=south, east=east, north=north)
    except ValidationError as e:
        raise GeometryError(f"invalid bounding box {value!r}: {e.errors()[0]['msg']}") from e


def extract_bounds(record_id: str, value: Any) -> SpatialBound:
    """Build the SpatialBound for a record from its bounding box value."""
    return SpatialBound(record_id=record_id, box=parse_bounding_box(value))


def _to_floats(components: Sequence[Any]) -> tuple[float, float, float, float]:
    if len(components) != 4:
        raise GeometryError(f"bounding box needs 4 components, got {len(components)}")
    values = []
    for component in components:
        # bool is an int subclass but never a coordinate
        if isinstance(component, bool):
            raise GeometryError(f"non-numeric bounding box component: {component!r}")
        try:
            values.append(float(component.strip() if isinstance(component, str) else component))
        except (TypeError, ValueError) as e:
            raise GeometryError(f"non-numeric bounding box component: {component!r}") from e
    return values[0], values[1], values[2], values[3]

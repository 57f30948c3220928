from ogm2sqlite.models.enums import BoundsKind, ExtractionMode
from ogm2sqlite.models.records import BoundingBox, FulltextRecord, SpatialBound

__all__ = [
    "BoundingBox",
    "BoundsKind",
    "ExtractionMode",
    "FulltextRecord",
    "SpatialBound",
]

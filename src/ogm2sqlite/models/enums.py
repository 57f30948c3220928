from enum import StrEnum


class ExtractionMode(StrEnum):
    BINARY = "binary"
    TEXT = "text"


class BoundsKind(StrEnum):
    GEOPOLY = "geopoly"
    RTREE = "rtree"

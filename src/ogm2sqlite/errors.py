"""Exception hierarchy for the conversion pipeline.

Per-record failures derive from RecordError and are handled by skipping the
record. Structural failures (schema setup, index creation) are fatal.
"""


class Ogm2SqliteError(Exception):
    """Base class for all pipeline errors."""


class RecordError(Ogm2SqliteError):
    """A single record could not be converted."""


class GeometryError(RecordError):
    """The bounding box of a record is missing or malformed."""


class MappingError(RecordError):
    """A record could not be mapped to the canonical vocabulary."""


class StoreError(RecordError):
    """The database rejected a write for a record."""


class SchemaError(Ogm2SqliteError):
    """The database tables could not be created."""


class IndexBuildError(Ogm2SqliteError):
    """The derived document indexes could not be created."""

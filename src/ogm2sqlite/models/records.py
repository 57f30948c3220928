import json
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ogm2sqlite.models.fields import FULLTEXT_FIELDS, ID_FIELD


class BoundingBox(BaseModel):
    """Rectangular extent in longitude/latitude degrees."""

    west: float = Field(allow_inf_nan=False)
    south: float = Field(allow_inf_nan=False)
    east: float = Field(allow_inf_nan=False)
    north: float = Field(allow_inf_nan=False)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _validate_extent(self) -> "BoundingBox":
        if self.north < self.south:
            raise ValueError("north must be greater than or equal to south")
        if self.east < self.west:
            raise ValueError("box crosses the antimeridian")
        return self

    def ring(self) -> list[tuple[float, float]]:
        """Closed counter-clockwise ring starting at the south-west corner."""
        return [
            (self.west, self.south),
            (self.east, self.south),
            (self.east, self.north),
            (self.west, self.north),
            (self.west, self.south),
        ]


class SpatialBound(BaseModel):
    """The polygon written to the bounds table for one record."""

    record_id: str
    box: BoundingBox

    model_config = ConfigDict(frozen=True, extra="forbid")

    @property
    def ring(self) -> list[tuple[float, float]]:
        return self.box.ring()

    def to_geopoly(self) -> str:
        """Serialize the ring as the JSON literal accepted by geopoly."""
        return json.dumps([[x, y] for x, y in self.ring])


class FulltextRecord(BaseModel):
    """Flattened, all-text projection of a canonical record.

    Field order matches the column order of the fulltext table.
    """

    COLUMNS: ClassVar[tuple[str, ...]] = (ID_FIELD, *FULLTEXT_FIELDS)

    id: str
    access_rights: str = ""
    creator: str = ""
    description: str = ""
    format: str = ""
    identifier: str = ""
    location: str = ""
    provider: str = ""
    publisher: str = ""
    resource_class: str = ""
    resource_type: str = ""
    subject: str = ""
    temporal: str = ""
    theme: str = ""
    title: str = ""

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("id")
    @classmethod
    def _ensure_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("id cannot be empty")
        return value

    def to_row(self) -> tuple[str, ...]:
        return tuple(getattr(self, column) for column in self.COLUMNS)


__all__ = ["BoundingBox", "FulltextRecord", "SpatialBound"]

"""SQLModel table definitions for database persistence.

Only the documents table is an ordinary table. The bounds and fulltext
tables are SQLite virtual tables (geopoly/rtree and fts5) which SQLModel
cannot describe, so their DDL lives in the DocumentStore service.

The documents payload is an open-ended JSON object: the canonical record,
including any field outside the canonical vocabulary. It is stored in
SQLite's binary JSON encoding so it can be queried and indexed with
jsonb_extract(data, '$.<field>') expressions.
"""

from typing import Any

from sqlalchemy import JSON, func
from sqlalchemy.types import TypeDecorator
from sqlmodel import Field, SQLModel

from ogm2sqlite.sqlite_features import SQLITE_HAS_JSONB


class JSONB(TypeDecorator):
    """JSON column written through jsonb() and read back through json().

    Falls back to json() on both sides when the SQLite library predates
    the binary JSON format.
    """

    impl = JSON
    cache_ok = True

    def bind_expression(self, bindvalue):
        if SQLITE_HAS_JSONB:
            return func.jsonb(bindvalue, type_=self)
        return func.json(bindvalue, type_=self)

    def column_expression(self, col):
        return func.json(col, type_=self)


class DocumentRecord(SQLModel, table=True):
    """SQLModel table holding one canonical record per identifier."""

    __tablename__ = "documents"

    id: str = Field(primary_key=True)
    data: dict[str, Any] = Field(default_factory=dict, sa_type=JSONB)

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Literal

# ============================================================================
# Diagram model
#
# Canonical representation of an entity-relationship diagram:
# tables placed on a canvas, their ordered columns, and relationships
# derived from foreign-key columns.
# ============================================================================

Cardinality = Literal["one-to-one", "one-to-many", "many-to-one", "many-to-many"]
Direction = Literal["unidirectional", "bidirectional"]

CARDINALITIES: tuple[Cardinality, ...] = (
    "one-to-one",
    "one-to-many",
    "many-to-one",
    "many-to-many",
)
DIRECTIONS: tuple[Direction, ...] = ("unidirectional", "bidirectional")

DEFAULT_CARDINALITY: Cardinality = "many-to-one"
DEFAULT_DIRECTION: Direction = "unidirectional"

# SQL type vocabulary across SQL Server, Postgres and MySQL. Sized forms
# like varchar(50) or decimal(10, 2) are accepted on top of these base names.
SQL_TYPES: tuple[str, ...] = (
    # integers
    "int",
    "integer",
    "bigint",
    "smallint",
    "tinyint",
    "mediumint",
    "int2",
    "int4",
    "int8",
    "serial",
    "smallserial",
    "bigserial",
    # exact and approximate numerics
    "decimal",
    "numeric",
    "number",
    "float",
    "float4",
    "float8",
    "real",
    "double",
    "double precision",
    "money",
    "smallmoney",
    # booleans and bits
    "bit",
    "bit varying",
    "varbit",
    "bool",
    "boolean",
    # character data
    "char",
    "character",
    "character varying",
    "nchar",
    "bpchar",
    "varchar",
    "varchar2",
    "nvarchar",
    "nvarchar2",
    "text",
    "ntext",
    "tinytext",
    "mediumtext",
    "longtext",
    "citext",
    "clob",
    "nclob",
    # date and time
    "date",
    "time",
    "timetz",
    "time with time zone",
    "time without time zone",
    "datetime",
    "datetime2",
    "datetimeoffset",
    "smalldatetime",
    "timestamp",
    "timestamptz",
    "timestamp with time zone",
    "timestamp without time zone",
    "interval",
    "year",
    # identifiers and documents
    "uuid",
    "uniqueidentifier",
    "rowversion",
    "json",
    "jsonb",
    "xml",
    # binary
    "blob",
    "tinyblob",
    "mediumblob",
    "longblob",
    "binary",
    "varbinary",
    "bytea",
    "image",
    "raw",
    # network and spatial
    "inet",
    "cidr",
    "macaddr",
    "geography",
    "geometry",
)

_SQL_TYPE_RE = re.compile(
    r"^(?P<base>[a-z][a-z0-9_]*(?:\s+[a-z][a-z0-9_]*)*)\s*(?:\(\s*(?P<size>\d+|max)\s*(?:,\s*(?P<scale>\d+)\s*)?\))?$"
)


def normalize_data_type(value: str) -> str:
    """Validate a column type against the SQL vocabulary and normalize it.

    ``"VARCHAR( 50 )"`` becomes ``"varchar(50)"``. Raises ``ValueError`` for
    anything outside the vocabulary.
    """
    if not isinstance(value, str):
        raise ValueError(f"Column type must be a string, got {type(value).__name__}")
    match = _SQL_TYPE_RE.match(value.strip().lower())
    base = " ".join(match.group("base").split()) if match else None
    if base not in SQL_TYPES:
        raise ValueError(f"Unsupported column type '{value}'")
    out = base
    if match.group("size") is not None:
        out += f"({match.group('size')}"
        if match.group("scale") is not None:
            out += f", {match.group('scale')}"
        out += ")"
    return out


@dataclass(slots=True)
class Point:
    x: float
    y: float


@dataclass(slots=True)
class Column:
    """A single column of a table."""

    id: str
    name: str
    # One of the SQL_TYPES vocabulary, possibly sized
    data_type: str = "varchar(50)"
    is_primary_key: bool = False
    is_foreign_key: bool = False
    # Name-based pointer: "<TableName>.<ColumnName>"
    foreign_key_reference: str | None = None
    is_auto_increment: bool = False
    is_guid_generated: bool = False


@dataclass(slots=True)
class Table:
    """A named entity placed on the canvas."""

    id: str
    name: str
    position: Point = field(default_factory=lambda: Point(x=0.0, y=0.0))
    # Order is meaningful: row index drives connector anchors
    columns: list[Column] = field(default_factory=list)

    def find_column(self, column_id: str) -> Column | None:
        for col in self.columns:
            if col.id == column_id:
                return col
        return None

    def column_index(self, column_id: str) -> int:
        """Row index of a column, or -1 when the column is gone."""
        for i, col in enumerate(self.columns):
            if col.id == column_id:
                return i
        return -1


@dataclass(slots=True)
class Relationship:
    """A directed link from a foreign-key column to the column it references."""

    id: str
    from_table_id: str
    from_column_id: str
    to_table_id: str
    to_column_id: str
    cardinality: Cardinality = DEFAULT_CARDINALITY
    direction: Direction = DEFAULT_DIRECTION

    def touches(self, table_id: str) -> bool:
        return self.from_table_id == table_id or self.to_table_id == table_id


@dataclass(slots=True)
class Diagram:
    """Snapshot of a whole graph, as exchanged with the codec."""

    tables: list[Table] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)


def copy_column(col: Column) -> Column:
    return Column(
        id=col.id,
        name=col.name,
        data_type=col.data_type,
        is_primary_key=col.is_primary_key,
        is_foreign_key=col.is_foreign_key,
        foreign_key_reference=col.foreign_key_reference,
        is_auto_increment=col.is_auto_increment,
        is_guid_generated=col.is_guid_generated,
    )


def copy_table(table: Table) -> Table:
    return Table(
        id=table.id,
        name=table.name,
        position=Point(x=table.position.x, y=table.position.y),
        columns=[copy_column(c) for c in table.columns],
    )


def copy_relationship(rel: Relationship) -> Relationship:
    return Relationship(
        id=rel.id,
        from_table_id=rel.from_table_id,
        from_column_id=rel.from_column_id,
        to_table_id=rel.to_table_id,
        to_column_id=rel.to_column_id,
        cardinality=rel.cardinality,
        direction=rel.direction,
    )

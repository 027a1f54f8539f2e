from __future__ import annotations

import json
import logging
from typing import Any, Sequence

from .types import (
    CARDINALITIES,
    DEFAULT_CARDINALITY,
    DEFAULT_DIRECTION,
    DIRECTIONS,
    Column,
    Diagram,
    Point,
    Relationship,
    Table,
    normalize_data_type,
)

# ============================================================================
# Document codec
#
# The whole graph travels as one pretty-printed JSON document:
#
#   {
#     "tables": [{"id", "name", "x", "y", "columns": [
#         {"id", "name", "type", "isPrimaryKey", "isForeignKey",
#          "foreignKeyReference"?, "isAutoIncrement"?, "isGuid"?}]}],
#     "relationships": [{"id", "fromTableId", "fromColumnId", "toTableId",
#         "toColumnId", "relationshipType", "direction"}]
#   }
#
# deserialize() is lenient (host documents: log and start empty);
# load_document() is strict (file imports: raise DocumentError).
# ============================================================================

logger = logging.getLogger(__name__)

DIAGRAM_SUFFIX = ".uml.json"


class DocumentError(ValueError):
    """Raised when a diagram document cannot be decoded."""


# ============================================================================
# Encoding
# ============================================================================


def serialize(tables: Sequence[Table], relationships: Sequence[Relationship]) -> str:
    doc = {
        "tables": [_encode_table(t) for t in tables],
        "relationships": [_encode_relationship(r) for r in relationships],
    }
    return json.dumps(doc, indent=2, ensure_ascii=False)


def _encode_table(table: Table) -> dict[str, Any]:
    return {
        "id": table.id,
        "name": table.name,
        "x": table.position.x,
        "y": table.position.y,
        "columns": [_encode_column(c) for c in table.columns],
    }


def _encode_column(col: Column) -> dict[str, Any]:
    out: dict[str, Any] = {
        "id": col.id,
        "name": col.name,
        "type": col.data_type,
        "isPrimaryKey": col.is_primary_key,
        "isForeignKey": col.is_foreign_key,
    }
    if col.foreign_key_reference is not None:
        out["foreignKeyReference"] = col.foreign_key_reference
    if col.is_auto_increment:
        out["isAutoIncrement"] = True
    if col.is_guid_generated:
        out["isGuid"] = True
    return out


def _encode_relationship(rel: Relationship) -> dict[str, Any]:
    return {
        "id": rel.id,
        "fromTableId": rel.from_table_id,
        "fromColumnId": rel.from_column_id,
        "toTableId": rel.to_table_id,
        "toColumnId": rel.to_column_id,
        "relationshipType": rel.cardinality,
        "direction": rel.direction,
    }


# ============================================================================
# Decoding
# ============================================================================


def deserialize(text: str) -> tuple[list[Table], list[Relationship]]:
    """Decode a host document, falling back to an empty graph on any error.

    Column types outside the SQL vocabulary are kept as written rather than
    failing the whole document.
    """
    try:
        diagram = _decode_document(text, strict=False)
    except DocumentError:
        logger.warning("Failed to parse diagram document; starting empty", exc_info=True)
        return [], []
    return diagram.tables, diagram.relationships


def load_document(text: str) -> Diagram:
    """Decode a document or raise DocumentError describing the first problem.

    Nothing is returned unless the whole document decodes.
    """
    return _decode_document(text, strict=True)


def _decode_document(text: str, strict: bool) -> Diagram:
    try:
        data = json.loads(text)
    except (TypeError, json.JSONDecodeError) as err:
        raise DocumentError(f"Invalid diagram JSON: {err}") from err

    if not isinstance(data, dict):
        raise DocumentError("Diagram document must be a JSON object")

    raw_tables = data.get("tables", [])
    raw_rels = data.get("relationships", [])
    if not isinstance(raw_tables, list):
        raise DocumentError("'tables' must be a list")
    if not isinstance(raw_rels, list):
        raise DocumentError("'relationships' must be a list")

    tables = [_decode_table(t, f"tables[{i}]", strict) for i, t in enumerate(raw_tables)]
    relationships = [
        _decode_relationship(r, f"relationships[{i}]") for i, r in enumerate(raw_rels)
    ]
    return Diagram(tables=tables, relationships=relationships)


def _decode_table(raw: Any, where: str, strict: bool) -> Table:
    obj = _require_object(raw, where)
    raw_columns = obj.get("columns", [])
    if not isinstance(raw_columns, list):
        raise DocumentError(f"{where}.columns must be a list")
    columns = [
        _decode_column(c, f"{where}.columns[{i}]", strict)
        for i, c in enumerate(raw_columns)
    ]

    seen: set[str] = set()
    for col in columns:
        if col.id in seen:
            raise DocumentError(f"{where}: duplicate column id '{col.id}'")
        seen.add(col.id)

    return Table(
        id=_require_str(obj, "id", where),
        name=_require_str(obj, "name", where),
        position=Point(x=_number(obj, "x", where), y=_number(obj, "y", where)),
        columns=columns,
    )


def _decode_column(raw: Any, where: str, strict: bool) -> Column:
    obj = _require_object(raw, where)
    # Types are stored as written; only drafts normalise them
    data_type = _require_str(obj, "type", where)
    try:
        normalize_data_type(data_type)
    except ValueError as err:
        if strict:
            raise DocumentError(f"{where}.type: {err}") from err
        logger.warning("%s.type: keeping unrecognised column type %r", where, data_type)

    ref = obj.get("foreignKeyReference")
    if ref is not None and not isinstance(ref, str):
        raise DocumentError(f"{where}.foreignKeyReference must be a string")

    return Column(
        id=_require_str(obj, "id", where),
        name=_require_str(obj, "name", where),
        data_type=data_type,
        is_primary_key=_flag(obj, "isPrimaryKey", where),
        is_foreign_key=_flag(obj, "isForeignKey", where),
        foreign_key_reference=ref,
        is_auto_increment=_flag(obj, "isAutoIncrement", where),
        is_guid_generated=_flag(obj, "isGuid", where),
    )


def _decode_relationship(raw: Any, where: str) -> Relationship:
    obj = _require_object(raw, where)
    cardinality = obj.get("relationshipType", DEFAULT_CARDINALITY)
    if cardinality not in CARDINALITIES:
        raise DocumentError(f"{where}.relationshipType: unknown value {cardinality!r}")
    direction = obj.get("direction", DEFAULT_DIRECTION)
    if direction not in DIRECTIONS:
        raise DocumentError(f"{where}.direction: unknown value {direction!r}")

    return Relationship(
        id=_require_str(obj, "id", where),
        from_table_id=_require_str(obj, "fromTableId", where),
        from_column_id=_require_str(obj, "fromColumnId", where),
        to_table_id=_require_str(obj, "toTableId", where),
        to_column_id=_require_str(obj, "toColumnId", where),
        cardinality=cardinality,
        direction=direction,
    )


# ============================================================================
# Field helpers
# ============================================================================


def _require_object(raw: Any, where: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise DocumentError(f"{where} must be an object")
    return raw


def _require_str(obj: dict[str, Any], key: str, where: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise DocumentError(f"{where}.{key} must be a string")
    return value


def _number(obj: dict[str, Any], key: str, where: str) -> float:
    value = obj.get(key, 0)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DocumentError(f"{where}.{key} must be a number")
    return value


def _flag(obj: dict[str, Any], key: str, where: str) -> bool:
    value = obj.get(key, False)
    if not isinstance(value, bool):
        raise DocumentError(f"{where}.{key} must be a boolean")
    return value

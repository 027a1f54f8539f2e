from __future__ import annotations

import logging
from typing import Protocol, Sequence

from .ids import IdGenerator
from .types import (
    Column,
    Relationship,
    Table,
    DEFAULT_CARDINALITY,
    DEFAULT_DIRECTION,
)

# ============================================================================
# Relationship inference
#
# Relationships are never drawn by hand. Each time a table is committed its
# outgoing relationships are thrown away and rebuilt from the foreign-key
# columns it declares.
#
# Note: rebuilding mints fresh ids and resets cardinality/direction to
# many-to-one/unidirectional, so any customization of an outgoing link is
# lost when its table is saved again.
# ============================================================================

logger = logging.getLogger(__name__)


class ForeignKeyResolver(Protocol):
    """Maps a column's foreign-key reference onto a (table, column) target."""

    def resolve(
        self, reference: str, tables: Sequence[Table]
    ) -> tuple[Table, Column] | None: ...


class NameReferenceResolver:
    """Resolves "<TableName>.<ColumnName>" by first name match.

    Names are not unique, so the first table (and the first column within
    it) with a matching name wins. Renaming the referenced table breaks the
    link on the next inference pass.
    """

    def resolve(
        self, reference: str, tables: Sequence[Table]
    ) -> tuple[Table, Column] | None:
        parts = reference.split(".")
        if len(parts) < 2:
            return None
        table_name, column_name = parts[0], parts[1]

        ref_table = next((t for t in tables if t.name == table_name), None)
        if ref_table is None:
            return None
        ref_column = next((c for c in ref_table.columns if c.name == column_name), None)
        if ref_column is None:
            return None
        return ref_table, ref_column


class RelationshipInferenceEngine:
    def __init__(
        self,
        id_generator: IdGenerator,
        resolver: ForeignKeyResolver | None = None,
    ) -> None:
        self.id_generator = id_generator
        self.resolver = resolver or NameReferenceResolver()

    def infer(self, table: Table, tables: Sequence[Table]) -> list[Relationship]:
        """Synthesize the outgoing relationships of ``table``, in column order."""
        out: list[Relationship] = []
        for col in table.columns:
            if not col.is_foreign_key or not col.foreign_key_reference:
                continue
            target = self.resolver.resolve(col.foreign_key_reference, tables)
            if target is None:
                logger.debug(
                    "Unresolved foreign key %s.%s -> %r",
                    table.name, col.name, col.foreign_key_reference,
                )
                continue
            ref_table, ref_column = target
            out.append(
                Relationship(
                    id=self.id_generator.next("rel"),
                    from_table_id=table.id,
                    from_column_id=col.id,
                    to_table_id=ref_table.id,
                    to_column_id=ref_column.id,
                    cardinality=DEFAULT_CARDINALITY,
                    direction=DEFAULT_DIRECTION,
                )
            )
        return out

    def recompute(
        self,
        table: Table,
        tables: Sequence[Table],
        relationships: Sequence[Relationship],
    ) -> list[Relationship]:
        """Return the relationship set after committing ``table``.

        Relationships owned by other tables are kept as-is, even those that
        point into ``table`` and may now be stale.
        """
        kept = [r for r in relationships if r.from_table_id != table.id]
        return kept + self.infer(table, tables)

from __future__ import annotations

import logging
from typing import Callable, Literal, Sequence

from .ids import IdGenerator, MonotonicIdGenerator
from .inference import RelationshipInferenceEngine
from .types import (
    CARDINALITIES,
    DIRECTIONS,
    Cardinality,
    Column,
    Direction,
    Point,
    Relationship,
    Table,
    copy_relationship,
    copy_table,
    normalize_data_type,
)

# ============================================================================
# Diagram store
#
# Owns the tables and relationships. Every other component reads through
# it and writes through its operations; listeners are told about each
# mutation so the host can re-serialize the document.
# ============================================================================

logger = logging.getLogger(__name__)

Change = Literal["add", "update", "delete", "move", "relationship", "replace"]
Listener = Callable[["DiagramStore", Change], None]

NEW_TABLE_NAME = "NewTable"
NEW_TABLE_POSITION = (100.0, 100.0)
NEW_COLUMN_NAME = "NewColumn"
NEW_COLUMN_TYPE = "varchar(50)"

_COLUMN_FIELDS = frozenset({
    "name",
    "data_type",
    "is_primary_key",
    "is_foreign_key",
    "foreign_key_reference",
    "is_auto_increment",
    "is_guid_generated",
})


class TableDraft:
    """Edit-session copy of a table.

    Column edits stay local until the draft is handed to
    ``DiagramStore.update_table``.
    """

    def __init__(self, table: Table, id_generator: IdGenerator) -> None:
        self._table = copy_table(table)
        self._ids = id_generator

    @property
    def id(self) -> str:
        return self._table.id

    @property
    def name(self) -> str:
        return self._table.name

    @property
    def columns(self) -> list[Column]:
        return self._table.columns

    def rename(self, name: str) -> None:
        self._table.name = name

    def add_column(self) -> Column:
        col = Column(
            id=self._ids.next("col"),
            name=NEW_COLUMN_NAME,
            data_type=NEW_COLUMN_TYPE,
        )
        self._table.columns.append(col)
        return col

    def update_column(self, column_id: str, **changes: object) -> None:
        unknown = set(changes) - _COLUMN_FIELDS
        if unknown:
            raise TypeError(f"Unknown column field(s): {', '.join(sorted(unknown))}")
        col = self._table.find_column(column_id)
        if col is None:
            return
        if "data_type" in changes:
            changes["data_type"] = normalize_data_type(changes["data_type"])  # type: ignore[arg-type]
        for key, value in changes.items():
            setattr(col, key, value)

    def delete_column(self, column_id: str) -> None:
        # A table always keeps at least one column
        if len(self._table.columns) <= 1:
            return
        self._table.columns = [c for c in self._table.columns if c.id != column_id]

    def to_table(self) -> Table:
        return copy_table(self._table)


class DiagramStore:
    def __init__(
        self,
        id_generator: IdGenerator | None = None,
        inference: RelationshipInferenceEngine | None = None,
    ) -> None:
        self.id_generator = id_generator or MonotonicIdGenerator()
        self.inference = inference or RelationshipInferenceEngine(self.id_generator)
        self._tables: list[Table] = []
        self._relationships: list[Relationship] = []
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def tables(self) -> list[Table]:
        return [copy_table(t) for t in self._tables]

    @property
    def relationships(self) -> list[Relationship]:
        return [copy_relationship(r) for r in self._relationships]

    def get_table(self, table_id: str) -> Table | None:
        table = self._find_table(table_id)
        return copy_table(table) if table is not None else None

    def get_relationship(self, relationship_id: str) -> Relationship | None:
        rel = self._find_relationship(relationship_id)
        return copy_relationship(rel) if rel is not None else None

    def _find_table(self, table_id: str) -> Table | None:
        for t in self._tables:
            if t.id == table_id:
                return t
        return None

    def _find_relationship(self, relationship_id: str) -> Relationship | None:
        for r in self._relationships:
            if r.id == relationship_id:
                return r
        return None

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, change: Change) -> None:
        for listener in list(self._listeners):
            listener(self, change)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def new_table(self) -> Table:
        """Build (but do not add) a table seeded with an ``Id`` primary key."""
        x, y = NEW_TABLE_POSITION
        return Table(
            id=self.id_generator.next("table"),
            name=NEW_TABLE_NAME,
            position=Point(x=x, y=y),
            columns=[
                Column(
                    id=self.id_generator.next("col"),
                    name="Id",
                    data_type="int",
                    is_primary_key=True,
                )
            ],
        )

    def add_table(self, table: Table) -> None:
        self._tables.append(copy_table(table))
        self._notify("add")

    def update_table(self, table: Table) -> None:
        """Upsert ``table`` and rebuild its outgoing relationships."""
        committed = copy_table(table)
        for i, existing in enumerate(self._tables):
            if existing.id == committed.id:
                self._tables[i] = committed
                break
        else:
            self._tables.append(committed)

        self._relationships = self.inference.recompute(
            committed, self._tables, self._relationships
        )
        self._notify("update")

    def delete_table(self, table_id: str) -> None:
        if self._find_table(table_id) is None:
            return
        self._tables = [t for t in self._tables if t.id != table_id]
        self._relationships = [r for r in self._relationships if not r.touches(table_id)]
        self._notify("delete")

    def set_table_position(self, table_id: str, x: float, y: float) -> None:
        table = self._find_table(table_id)
        if table is None:
            return
        table.position = Point(x=x, y=y)
        self._notify("move")

    def set_relationship_kind(
        self,
        relationship_id: str,
        cardinality: Cardinality | None = None,
        direction: Direction | None = None,
    ) -> None:
        rel = self._find_relationship(relationship_id)
        if rel is None:
            raise KeyError(relationship_id)
        if cardinality is not None and cardinality not in CARDINALITIES:
            raise ValueError(f"Unknown cardinality '{cardinality}'")
        if direction is not None and direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction '{direction}'")
        if cardinality is not None:
            rel.cardinality = cardinality
        if direction is not None:
            rel.direction = direction
        self._notify("relationship")

    def replace(
        self, tables: Sequence[Table], relationships: Sequence[Relationship]
    ) -> None:
        self._tables = [copy_table(t) for t in tables]
        self._relationships = [copy_relationship(r) for r in relationships]
        logger.debug(
            "Graph replaced: %d table(s), %d relationship(s)",
            len(self._tables), len(self._relationships),
        )
        self._notify("replace")

    def draft(self, table_id: str) -> TableDraft:
        table = self._find_table(table_id)
        if table is None:
            raise KeyError(table_id)
        return TableDraft(table, self.id_generator)

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable

from .codec import DIAGRAM_SUFFIX, deserialize, load_document, serialize
from .connectors import CanvasGeometry, Connector, compute_connectors
from .drag import CANVAS, CoordinateTransform, DragController, HitTarget
from .ids import IdGenerator
from .inference import ForeignKeyResolver, RelationshipInferenceEngine
from .layout import ArrangeOptions, auto_arrange
from .renderer import SvgOptions, render_diagram_svg
from .store import Change, DiagramStore, TableDraft
from .types import Cardinality, Direction, Point, Table

# ============================================================================
# Diagram designer
#
# Wires the store, inference, drag controller, connector geometry and codec
# together behind the contract a hosting shell sees:
#
#   designer = DiagramDesigner(initial_data=text, on_change=host.save)
#
# Every committed mutation re-serializes the whole graph and hands it to
# on_change. The table editor is modelled as a single open draft.
# ============================================================================

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DesignerOptions:
    geometry: CanvasGeometry = field(default_factory=CanvasGeometry)
    # When False a drag emits one document on release instead of one per move
    emit_on_drag: bool = True
    arrange: ArrangeOptions = field(default_factory=ArrangeOptions)


class DiagramDesigner:
    def __init__(
        self,
        initial_data: str | None = None,
        on_change: Callable[[str], None] | None = None,
        options: DesignerOptions | None = None,
        id_generator: IdGenerator | None = None,
        transform: CoordinateTransform | None = None,
        resolver: ForeignKeyResolver | None = None,
    ) -> None:
        self.options = options or DesignerOptions()
        self.on_change = on_change
        self.store = DiagramStore(id_generator=id_generator)
        if resolver is not None:
            self.store.inference = RelationshipInferenceEngine(
                self.store.id_generator, resolver
            )
        self.drag = DragController(self.store, transform)
        self.draft: TableDraft | None = None
        self._moved_during_drag = False

        if initial_data:
            tables, relationships = deserialize(initial_data)
            self.store.replace(tables, relationships)

        self.store.subscribe(self._on_store_change)
        self._emit()

    # ------------------------------------------------------------------
    # Host contract
    # ------------------------------------------------------------------

    @property
    def document(self) -> str:
        return serialize(self.store.tables, self.store.relationships)

    def _emit(self) -> None:
        if self.on_change is not None:
            self.on_change(self.document)

    def _on_store_change(self, _store: DiagramStore, change: Change) -> None:
        if change == "move" and not self.options.emit_on_drag and self.drag.is_dragging:
            self._moved_during_drag = True
            return
        self._emit()

    # ------------------------------------------------------------------
    # Table editing
    # ------------------------------------------------------------------

    @property
    def tables(self) -> list[Table]:
        return self.store.tables

    @property
    def selected_table_id(self) -> str | None:
        return self.drag.selected_table_id

    def add_table(self) -> TableDraft:
        """Add a seeded table and open it in the editor."""
        table = self.store.new_table()
        self.store.add_table(table)
        self.draft = self.store.draft(table.id)
        return self.draft

    def edit_table(self, table_id: str) -> TableDraft:
        self.draft = self.store.draft(table_id)
        return self.draft

    def save_table(self) -> None:
        if self.draft is None:
            return
        self.store.update_table(self.draft.to_table())
        self.draft = None

    def cancel_edit(self) -> None:
        self.draft = None

    def delete_table(self, table_id: str) -> None:
        self.store.delete_table(table_id)
        if self.drag.selected_table_id == table_id:
            self.drag.selected_table_id = None
        if self.draft is not None and self.draft.id == table_id:
            self.draft = None

    def set_relationship_kind(
        self,
        relationship_id: str,
        cardinality: Cardinality | None = None,
        direction: Direction | None = None,
    ) -> None:
        self.store.set_relationship_kind(relationship_id, cardinality, direction)

    # ------------------------------------------------------------------
    # Pointer input
    # ------------------------------------------------------------------

    def pointer_down(self, target: HitTarget, x: float, y: float) -> None:
        self.drag.pointer_down(target, Point(x=x, y=y))

    def pointer_move(self, x: float, y: float) -> None:
        self.drag.pointer_move(Point(x=x, y=y))

    def pointer_up(self) -> None:
        self.drag.pointer_up()
        if self._moved_during_drag:
            self._moved_during_drag = False
            self._emit()

    def click_canvas(self) -> None:
        self.drag.pointer_down(CANVAS, Point(x=0.0, y=0.0))

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def connectors(self) -> list[Connector]:
        return compute_connectors(
            self.store.tables, self.store.relationships, self.options.geometry
        )

    def render_svg(self, options: SvgOptions | None = None) -> str:
        options = options or SvgOptions()
        if options.selected_table_id is None:
            options = replace(options, selected_table_id=self.drag.selected_table_id)
        return render_diagram_svg(
            self.store.tables, self.store.relationships, options, self.options.geometry
        )

    def summary(self) -> str:
        return (
            f"{len(self.store.tables)} table(s) | "
            f"{len(self.store.relationships)} relationship(s)"
        )

    def auto_arrange(self) -> None:
        positions = auto_arrange(
            self.store.tables,
            self.store.relationships,
            self.options.geometry,
            self.options.arrange,
        )
        for table_id, p in positions.items():
            self.store.set_table_position(table_id, p.x, p.y)

    # ------------------------------------------------------------------
    # File save / load
    # ------------------------------------------------------------------

    def save_diagram(self, path: str | Path) -> Path:
        """Write the current document, adding the .uml.json suffix if missing."""
        target = Path(path)
        if not target.name.endswith(DIAGRAM_SUFFIX):
            target = target.with_name(target.name + DIAGRAM_SUFFIX)
        target.write_text(self.document, encoding="utf-8")
        logger.info("Saved diagram to %s", target)
        return target

    def load_diagram(self, path: str | Path) -> None:
        """Replace the whole graph with a file's contents.

        Raises DocumentError (malformed) or OSError (unreadable); the current
        graph is left untouched in both cases.
        """
        text = Path(path).read_text(encoding="utf-8")
        diagram = load_document(text)
        self.draft = None
        self.drag.pointer_up()
        self.drag.selected_table_id = None
        self.store.replace(diagram.tables, diagram.relationships)
        logger.info(
            "Loaded diagram from %s: %d table(s), %d relationship(s)",
            path, len(diagram.tables), len(diagram.relationships),
        )

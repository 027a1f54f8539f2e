"""pretty-erd: entity-relationship diagram designer core with SVG connector rendering."""

from __future__ import annotations

from .types import (
    CARDINALITIES,
    DIRECTIONS,
    SQL_TYPES,
    Cardinality,
    Column,
    Diagram,
    Direction,
    Point,
    Relationship,
    Table,
)
from .ids import IdGenerator, MonotonicIdGenerator, SequentialIdGenerator
from .inference import ForeignKeyResolver, NameReferenceResolver, RelationshipInferenceEngine
from .store import DiagramStore, TableDraft
from .drag import (
    CoordinateTransform,
    DragController,
    DragState,
    HitTarget,
    IdentityTransform,
    OffsetTransform,
)
from .connectors import CanvasGeometry, Connector, compute_connectors
from .codec import DocumentError, deserialize, load_document, serialize
from .theme import DiagramColors, THEMES, DEFAULTS
from .renderer import SvgOptions, render_diagram_svg
from .layout import ArrangeOptions, auto_arrange
from .designer import DesignerOptions, DiagramDesigner

__all__ = [
    "CARDINALITIES",
    "DIRECTIONS",
    "SQL_TYPES",
    "Cardinality",
    "Column",
    "Diagram",
    "Direction",
    "Point",
    "Relationship",
    "Table",
    "IdGenerator",
    "MonotonicIdGenerator",
    "SequentialIdGenerator",
    "ForeignKeyResolver",
    "NameReferenceResolver",
    "RelationshipInferenceEngine",
    "DiagramStore",
    "TableDraft",
    "CoordinateTransform",
    "DragController",
    "DragState",
    "HitTarget",
    "IdentityTransform",
    "OffsetTransform",
    "CanvasGeometry",
    "Connector",
    "compute_connectors",
    "DocumentError",
    "deserialize",
    "load_document",
    "serialize",
    "DiagramColors",
    "THEMES",
    "DEFAULTS",
    "SvgOptions",
    "render_diagram_svg",
    "ArrangeOptions",
    "auto_arrange",
    "DesignerOptions",
    "DiagramDesigner",
]

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from grandalf.graphs import Vertex, Edge, Graph
from grandalf.layouts import SugiyamaLayout

from .connectors import CanvasGeometry
from .types import Point, Relationship, Table

# ============================================================================
# Auto-arrange
#
# Uses grandalf's Sugiyama layout to place tables left-to-right along their
# foreign-key links. Tables are vertices sized from the canvas geometry;
# relationships whose endpoints exist become edges. Each connected
# component is laid out on its own and the components are placed side by
# side, in the order their first table appears in the diagram.
# ============================================================================


@dataclass(slots=True)
class ArrangeOptions:
    padding: float = 40
    # Gap between tables within a layer (vertical, since layers run left-to-right)
    node_spacing: float = 40
    # Gap between layers (horizontal)
    layer_spacing: float = 80
    # Gap between disconnected groups of tables
    component_spacing: float = 80


class _VertexView:
    """Minimal view object required by grandalf's SugiyamaLayout."""

    def __init__(self, w: float, h: float) -> None:
        self.w = w
        self.h = h
        # xy is set by the layout engine (center coordinates)
        self.xy = (0.0, 0.0)


def auto_arrange(
    tables: Sequence[Table],
    relationships: Sequence[Relationship],
    geometry: CanvasGeometry | None = None,
    options: ArrangeOptions | None = None,
) -> dict[str, Point]:
    """Compute a top-left position for every table."""
    if not tables:
        return {}
    geometry = geometry or CanvasGeometry()
    options = options or ArrangeOptions()

    order = {t.id: i for i, t in enumerate(tables)}
    vertices: dict[str, Vertex] = {}
    for table in tables:
        v = Vertex(table.id)
        # LR layout: grandalf lays out top-down, so width and height swap
        v.view = _VertexView(geometry.table_height(table), geometry.table_width)
        vertices[table.id] = v

    edges: list[Edge] = []
    seen_pairs: set[tuple[str, str]] = set()
    for rel in relationships:
        src = vertices.get(rel.from_table_id)
        dst = vertices.get(rel.to_table_id)
        # Self references and parallel links add nothing to the layering
        if src is None or dst is None or src is dst:
            continue
        pair = (rel.to_table_id, rel.from_table_id)
        if pair in seen_pairs or pair[::-1] in seen_pairs:
            continue
        seen_pairs.add(pair)
        # Referenced table first so parents sit left of their children
        edges.append(Edge(dst, src))

    g = Graph(list(vertices.values()), edges)

    components = sorted(
        g.C, key=lambda gc: min(order[v.data] for v in gc.sV)
    )

    positions: dict[str, Point] = {}
    cursor_x = options.padding
    for gc in components:
        try:
            sug = SugiyamaLayout(gc)
            sug.xspace = options.node_spacing
            sug.yspace = options.layer_spacing
            sug.init_all()
            sug.draw()
        except Exception as err:
            raise RuntimeError(f"Grandalf layout failed (auto-arrange): {err}") from err

        placed: dict[str, Point] = {}
        for v in gc.sV:
            # LR direction: grandalf's y-axis is our x-axis
            cx, cy = v.view.xy[1], v.view.xy[0]
            placed[v.data] = Point(
                x=cx - geometry.table_width / 2,
                y=cy - v.view.w / 2,
            )

        min_x = min(p.x for p in placed.values())
        min_y = min(p.y for p in placed.values())
        max_x = max(p.x for p in placed.values()) + geometry.table_width
        for table_id, p in placed.items():
            positions[table_id] = Point(
                x=p.x - min_x + cursor_x,
                y=p.y - min_y + options.padding,
            )
        cursor_x += (max_x - min_x) + options.component_spacing

    return positions

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Sequence

from .types import Cardinality, Direction, Point, Relationship, Table

# ============================================================================
# Connector geometry
#
# Pure function from (tables, relationships) to renderable connectors.
# A connector leaves the right edge of the source table at the row of the
# foreign-key column and enters the left edge of the target table at the
# row of the referenced column, as a single S-curve:
#
#   M ax ay  Q mx ay, mx my  T bx by
#
# where (mx, my) is the midpoint of A and B. The smooth "T" segment mirrors
# the first control point, so both ends leave horizontally.
# ============================================================================

logger = logging.getLogger(__name__)

# Arrowhead color per cardinality
CARDINALITY_COLORS: dict[Cardinality, str] = {
    "one-to-one": "#2196F3",
    "one-to-many": "#FF9800",
    "many-to-one": "#4CAF50",
    "many-to-many": "#9C27B0",
}

ARROW_LENGTH = 10.0
ARROW_ANGLE = math.pi / 6
MIDPOINT_RADIUS = 4.0


@dataclass(slots=True)
class CanvasGeometry:
    """Fixed table box metrics used for anchoring connectors."""

    table_width: float = 150.0
    header_height: float = 40.0
    row_height: float = 25.0

    def row_center_y(self, table: Table, index: int) -> float:
        return table.position.y + self.header_height + index * self.row_height + self.row_height / 2

    def table_height(self, table: Table) -> float:
        return self.header_height + max(len(table.columns), 1) * self.row_height


@dataclass(slots=True)
class ArrowMarker:
    """Triangular arrowhead whose tip sits on the curve's endpoint."""

    tip: Point
    # Direction the arrow points, radians
    angle: float
    color: str
    points: list[Point] = field(default_factory=list)


@dataclass(slots=True)
class Connector:
    relationship_id: str
    from_table_id: str
    to_table_id: str
    cardinality: Cardinality
    direction: Direction
    start: Point
    end: Point
    control: Point
    midpoint: Point
    color: str
    path: str
    end_arrow: ArrowMarker
    start_arrow: ArrowMarker | None = None
    # many-to-many links get a filled dot at the midpoint
    has_midpoint_marker: bool = False


def compute_connectors(
    tables: Sequence[Table],
    relationships: Sequence[Relationship],
    geometry: CanvasGeometry | None = None,
) -> list[Connector]:
    """Build connectors for every relationship whose endpoints resolve.

    Relationships pointing at a deleted table or column are skipped.
    """
    geometry = geometry or CanvasGeometry()
    by_id = {t.id: t for t in tables}

    connectors: list[Connector] = []
    for rel in relationships:
        conn = _build_connector(rel, by_id, geometry)
        if conn is None:
            logger.debug("Skipping connector for dangling relationship %s", rel.id)
            continue
        connectors.append(conn)
    return connectors


def _build_connector(
    rel: Relationship,
    by_id: dict[str, Table],
    geometry: CanvasGeometry,
) -> Connector | None:
    src = by_id.get(rel.from_table_id)
    dst = by_id.get(rel.to_table_id)
    if src is None or dst is None:
        return None
    from_index = src.column_index(rel.from_column_id)
    to_index = dst.column_index(rel.to_column_id)
    if from_index < 0 or to_index < 0:
        return None

    a = Point(x=src.position.x + geometry.table_width, y=geometry.row_center_y(src, from_index))
    b = Point(x=dst.position.x, y=geometry.row_center_y(dst, to_index))
    mid = Point(x=(a.x + b.x) / 2, y=(a.y + b.y) / 2)
    control = Point(x=mid.x, y=a.y)
    # Control point of the smooth segment is the reflection of `control` about `mid`
    mirrored = Point(x=2 * mid.x - control.x, y=2 * mid.y - control.y)

    color = CARDINALITY_COLORS.get(rel.cardinality, CARDINALITY_COLORS["many-to-one"])

    end_arrow = _arrow(b, _tangent_angle(b, mirrored, fallback=(a, b)), color)
    start_arrow = None
    if rel.direction == "bidirectional":
        start_arrow = _arrow(a, _tangent_angle(a, control, fallback=(b, a)), color)

    path = (
        f"M {_fmt(a.x)} {_fmt(a.y)} "
        f"Q {_fmt(control.x)} {_fmt(control.y)}, {_fmt(mid.x)} {_fmt(mid.y)} "
        f"T {_fmt(b.x)} {_fmt(b.y)}"
    )

    return Connector(
        relationship_id=rel.id,
        from_table_id=src.id,
        to_table_id=dst.id,
        cardinality=rel.cardinality,
        direction=rel.direction,
        start=a,
        end=b,
        control=control,
        midpoint=mid,
        color=color,
        path=path,
        end_arrow=end_arrow,
        start_arrow=start_arrow,
        has_midpoint_marker=rel.cardinality == "many-to-many",
    )


def _tangent_angle(tip: Point, toward: Point, fallback: tuple[Point, Point]) -> float:
    """Angle of the vector toward -> tip; falls back to a chord when degenerate."""
    dx = tip.x - toward.x
    dy = tip.y - toward.y
    if abs(dx) < 1e-9 and abs(dy) < 1e-9:
        origin, target = fallback
        dx = target.x - origin.x
        dy = target.y - origin.y
        if abs(dx) < 1e-9 and abs(dy) < 1e-9:
            return 0.0
    return math.atan2(dy, dx)


def _arrow(tip: Point, angle: float, color: str) -> ArrowMarker:
    left = Point(
        x=tip.x - ARROW_LENGTH * math.cos(angle - ARROW_ANGLE),
        y=tip.y - ARROW_LENGTH * math.sin(angle - ARROW_ANGLE),
    )
    right = Point(
        x=tip.x - ARROW_LENGTH * math.cos(angle + ARROW_ANGLE),
        y=tip.y - ARROW_LENGTH * math.sin(angle + ARROW_ANGLE),
    )
    return ArrowMarker(tip=tip, angle=angle, color=color, points=[tip, left, right])


def _fmt(value: float) -> str:
    """Compact number formatting for SVG path data: 250.0 -> '250', 12.5 -> '12.5'."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .connectors import MIDPOINT_RADIUS, CanvasGeometry, Connector, compute_connectors
from .theme import DiagramColors, build_style_block, resolve_colors, svg_open_tag
from .styles import (
    CELL_PAD_X,
    FONT_SIZES,
    FONT_WEIGHTS,
    KEY_BADGE_HEIGHT,
    STROKE_WIDTHS,
    TEXT_BASELINE_SHIFT,
    estimate_text_width,
    truncate_to_width,
)
from .types import Column, Relationship, Table

# ============================================================================
# SVG canvas renderer
#
# Renders the designer canvas to a standalone SVG string.
#
# Render order:
#   1. Connector curves (behind boxes)
#   2. Table boxes (header + column rows)
#   3. Arrowheads and many-to-many midpoint dots (on top)
# ============================================================================


@dataclass(slots=True)
class SvgOptions:
    theme: str | DiagramColors | None = None
    font: str = "Inter"
    transparent: bool = False
    padding: float = 40
    selected_table_id: str | None = None


def render_diagram_svg(
    tables: Sequence[Table],
    relationships: Sequence[Relationship],
    options: SvgOptions | None = None,
    geometry: CanvasGeometry | None = None,
) -> str:
    """Render tables and their connectors as an SVG string."""
    options = options or SvgOptions()
    geometry = geometry or CanvasGeometry()
    colors = resolve_colors(options.theme)
    connectors = compute_connectors(tables, relationships, geometry)

    min_x, min_y, max_x, max_y = _bounds(tables, geometry)
    pad = options.padding
    # Shift so nothing sits left of / above the padding
    dx = pad - min_x if min_x < 0 else 0.0
    dy = pad - min_y if min_y < 0 else 0.0
    width = max_x + dx + pad
    height = max_y + dy + pad

    parts: list[str] = []
    parts.append(svg_open_tag(width, height, colors, options.transparent))
    parts.append(build_style_block(options.font))

    group_open = f'<g transform="translate({dx} {dy})">' if dx or dy else "<g>"
    parts.append(group_open)

    # 1. Connector curves
    for conn in connectors:
        parts.append(_render_connector_path(conn))

    # 2. Table boxes
    for table in tables:
        parts.append(
            _render_table(table, geometry, selected=table.id == options.selected_table_id)
        )

    # 3. Markers
    for conn in connectors:
        parts.append(_render_connector_markers(conn))

    parts.append("</g>")
    parts.append("</svg>")
    return "\n".join(p for p in parts if p)


def _bounds(
    tables: Sequence[Table], geometry: CanvasGeometry
) -> tuple[float, float, float, float]:
    if not tables:
        return 0.0, 0.0, 0.0, 0.0
    xs = [t.position.x for t in tables]
    ys = [t.position.y for t in tables]
    right = [t.position.x + geometry.table_width for t in tables]
    bottom = [t.position.y + geometry.table_height(t) for t in tables]
    return min(xs), min(ys), max(right), max(bottom)


# ============================================================================
# Connectors
# ============================================================================


def _render_connector_path(conn: Connector) -> str:
    return (
        f'<path d="{conn.path}" fill="none" stroke="{conn.color}" '
        f'stroke-width="{STROKE_WIDTHS["connector"]}" '
        f'data-relationship="{_escape_xml(conn.relationship_id)}" '
        f'data-cardinality="{conn.cardinality}" />'
    )


def _render_connector_markers(conn: Connector) -> str:
    parts: list[str] = []
    arrows = [conn.end_arrow]
    if conn.start_arrow is not None:
        arrows.append(conn.start_arrow)
    for arrow in arrows:
        pts = " ".join(f"{p.x:.2f},{p.y:.2f}" for p in arrow.points)
        parts.append(f'<polygon points="{pts}" fill="{arrow.color}" />')

    if conn.has_midpoint_marker:
        parts.append(
            f'<circle cx="{conn.midpoint.x}" cy="{conn.midpoint.y}" '
            f'r="{MIDPOINT_RADIUS}" fill="{conn.color}" />'
        )
    return "\n".join(parts)


# ============================================================================
# Table boxes
# ============================================================================


def _render_table(table: Table, geometry: CanvasGeometry, selected: bool = False) -> str:
    """Render a table box with header and one row per column."""
    x = table.position.x
    y = table.position.y
    width = geometry.table_width
    height = geometry.table_height(table)
    header_height = geometry.header_height
    stroke = "var(--_selected)" if selected else "var(--_node-stroke)"
    stroke_width = STROKE_WIDTHS["outer_box"] * (2 if selected else 1)

    parts: list[str] = []

    parts.append(
        f'<rect x="{x}" y="{y}" width="{width}" height="{height}" '
        f'rx="4" ry="4" fill="var(--_node-fill)" stroke="{stroke}" '
        f'stroke-width="{stroke_width}" data-table="{_escape_xml(table.id)}" />'
    )
    parts.append(
        f'<rect x="{x}" y="{y}" width="{width}" height="{header_height}" '
        f'rx="4" ry="4" fill="var(--_header-fill)" stroke="{stroke}" '
        f'stroke-width="{stroke_width}" />'
    )

    name = truncate_to_width(
        table.name,
        width - CELL_PAD_X * 2,
        FONT_SIZES["table_header"],
        FONT_WEIGHTS["table_header"],
    )
    parts.append(
        f'<text x="{x + width / 2}" y="{y + header_height / 2}" text-anchor="middle" '
        f'dy="{TEXT_BASELINE_SHIFT}" font-size="{FONT_SIZES["table_header"]}" '
        f'font-weight="{FONT_WEIGHTS["table_header"]}" '
        f'fill="var(--_text)">{_escape_xml(name)}</text>'
    )

    row_top = y + header_height
    parts.append(
        f'<line x1="{x}" y1="{row_top}" x2="{x + width}" y2="{row_top}" '
        f'stroke="var(--_inner-stroke)" stroke-width="{STROKE_WIDTHS["inner_box"]}" />'
    )

    for i, col in enumerate(table.columns):
        row_y = geometry.row_center_y(table, i)
        parts.append(_render_column(col, x, row_y, width))

    return "\n".join(parts)


def _render_column(col: Column, box_x: float, y: float, box_width: float) -> str:
    """Render one column row.

    Layout: [PK,FK badge]  name  ...  type (right-aligned, mono)
    """
    parts: list[str] = []

    keys = []
    if col.is_primary_key:
        keys.append("PK")
    if col.is_foreign_key:
        keys.append("FK")

    badge_width = 0.0
    if keys:
        key_text = ",".join(keys)
        badge_width = (
            estimate_text_width(key_text, FONT_SIZES["key_badge"], FONT_WEIGHTS["key_badge"]) + 6
        )
        parts.append(
            f'<rect x="{box_x + 4}" y="{y - KEY_BADGE_HEIGHT / 2}" width="{badge_width}" '
            f'height="{KEY_BADGE_HEIGHT}" rx="2" ry="2" fill="var(--_key-badge)" />'
        )
        parts.append(
            f'<text x="{box_x + 4 + badge_width / 2}" y="{y}" text-anchor="middle" '
            f'dy="{TEXT_BASELINE_SHIFT}" font-size="{FONT_SIZES["key_badge"]}" '
            f'font-weight="{FONT_WEIGHTS["key_badge"]}" fill="var(--_text-sec)">'
            f"{key_text}</text>"
        )

    name_x = box_x + CELL_PAD_X + (badge_width + 2 if badge_width else 0)
    type_text = col.data_type
    type_width = estimate_text_width(
        type_text, FONT_SIZES["column_type"], FONT_WEIGHTS["column_type"]
    )
    name_room = box_x + box_width - CELL_PAD_X - type_width - 4 - name_x
    name = truncate_to_width(
        col.name, max(name_room, 0), FONT_SIZES["column_name"], FONT_WEIGHTS["column_name"]
    )

    parts.append(
        f'<text x="{name_x}" y="{y}" dy="{TEXT_BASELINE_SHIFT}" '
        f'font-size="{FONT_SIZES["column_name"]}" font-weight="{FONT_WEIGHTS["column_name"]}" '
        f'fill="var(--_text)">{_escape_xml(name)}</text>'
    )
    parts.append(
        f'<text x="{box_x + box_width - CELL_PAD_X}" y="{y}" class="mono" text-anchor="end" '
        f'dy="{TEXT_BASELINE_SHIFT}" font-size="{FONT_SIZES["column_type"]}" '
        f'fill="var(--_text-muted)">{_escape_xml(type_text)}</text>'
    )
    return "\n".join(parts)


def _escape_xml(text: str) -> str:
    """Escape special XML characters in text content."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )

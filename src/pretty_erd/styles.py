from __future__ import annotations

# ============================================================================
# Font metrics and drawing constants for the SVG canvas.
# ============================================================================


def estimate_text_width(text: str, font_size: float, font_weight: int) -> float:
    """Average character width in px at the given font size and weight (proportional font)."""
    if font_weight >= 600:
        width_ratio = 0.58
    elif font_weight >= 500:
        width_ratio = 0.55
    else:
        width_ratio = 0.52
    return len(text) * font_size * width_ratio


def truncate_to_width(text: str, max_width: float, font_size: float, font_weight: int) -> str:
    """Trim text with an ellipsis so it fits inside a fixed-width table box."""
    if estimate_text_width(text, font_size, font_weight) <= max_width:
        return text
    out = text
    while out and estimate_text_width(out + "…", font_size, font_weight) > max_width:
        out = out[:-1]
    return out + "…"


MONO_FONT_STACK = "'JetBrains Mono', 'SF Mono', 'Fira Code', ui-monospace, monospace"

FONT_SIZES = {
    "table_header": 13,
    "column_name": 12,
    "column_type": 11,
    "key_badge": 9,
}

FONT_WEIGHTS = {
    "table_header": 600,
    "column_name": 400,
    "column_type": 400,
    "key_badge": 600,
}

STROKE_WIDTHS = {
    "outer_box": 1,
    "inner_box": 0.75,
    "connector": 2,
}

TEXT_BASELINE_SHIFT = "0.35em"

CELL_PAD_X = 8
KEY_BADGE_HEIGHT = 14

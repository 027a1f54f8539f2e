from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from .styles import MONO_FONT_STACK

# ============================================================================
# Types
# ============================================================================


@dataclass(slots=True)
class DiagramColors:
    """Canvas color configuration.

    Required: bg + fg give a clean mono canvas.
    Optional: line, accent, muted, surface, border bring in richer color.
    Connector colors are fixed per cardinality and not themed.
    """

    bg: str
    fg: str
    line: str | None = None
    accent: str | None = None
    muted: str | None = None
    surface: str | None = None
    border: str | None = None


# ============================================================================
# Defaults
# ============================================================================

DEFAULTS = {"bg": "#FFFFFF", "fg": "#27272A"}

# color-mix() weights for derived CSS variables
MIX = {
    "text_sec": 60,
    "text_muted": 40,
    "text_faint": 25,
    "node_fill": 3,
    "node_stroke": 20,
    "header": 8,
    "selected": 60,
    "inner_stroke": 12,
    "key_badge": 10,
}

THEMES: dict[str, DiagramColors] = {
    "zinc-dark": DiagramColors(bg="#18181B", fg="#FAFAFA"),
    "vscode-dark": DiagramColors(
        bg="#1e1e1e", fg="#d4d4d4",
        line="#3c3c3c", accent="#007acc", muted="#858585",
    ),
    "vscode-light": DiagramColors(
        bg="#ffffff", fg="#333333",
        line="#e5e5e5", accent="#005fb8", muted="#6e7681",
    ),
    "github-light": DiagramColors(
        bg="#ffffff", fg="#1f2328",
        line="#d1d9e0", accent="#0969da", muted="#59636e",
    ),
    "github-dark": DiagramColors(
        bg="#0d1117", fg="#e6edf3",
        line="#3d444d", accent="#4493f8", muted="#9198a1",
    ),
    "nord": DiagramColors(
        bg="#2e3440", fg="#d8dee9",
        line="#4c566a", accent="#88c0d0", muted="#616e88",
    ),
}


def resolve_colors(theme: str | DiagramColors | None) -> DiagramColors:
    """Look up a named theme, pass DiagramColors through, default to zinc-light."""
    if theme is None:
        return DiagramColors(bg=DEFAULTS["bg"], fg=DEFAULTS["fg"])
    if isinstance(theme, DiagramColors):
        return theme
    try:
        return THEMES[theme]
    except KeyError:
        raise ValueError(
            f"Unknown theme '{theme}'. Available: {', '.join(sorted(THEMES))}"
        ) from None


# ============================================================================
# SVG style block
# ============================================================================


def build_style_block(font: str) -> str:
    """Build the CSS variable derivation rules for the SVG <style> block."""
    font_import = (
        f"@import url('https://fonts.googleapis.com/css2?family={quote(font)}"
        ":wght@400;500;600;700&amp;display=swap');"
    )

    derived_vars = f"""
    /* Derived from --bg and --fg (overridable via --line, --accent, etc.) */
    --_text:          var(--fg);
    --_text-sec:      var(--muted, color-mix(in srgb, var(--fg) {MIX["text_sec"]}%, var(--bg)));
    --_text-muted:    var(--muted, color-mix(in srgb, var(--fg) {MIX["text_muted"]}%, var(--bg)));
    --_text-faint:    color-mix(in srgb, var(--fg) {MIX["text_faint"]}%, var(--bg));
    --_node-fill:     var(--surface, color-mix(in srgb, var(--fg) {MIX["node_fill"]}%, var(--bg)));
    --_node-stroke:   var(--border, color-mix(in srgb, var(--fg) {MIX["node_stroke"]}%, var(--bg)));
    --_header-fill:   color-mix(in srgb, var(--fg) {MIX["header"]}%, var(--bg));
    --_selected:      var(--accent, color-mix(in srgb, var(--fg) {MIX["selected"]}%, var(--bg)));
    --_inner-stroke:  color-mix(in srgb, var(--fg) {MIX["inner_stroke"]}%, var(--bg));
    --_key-badge:     color-mix(in srgb, var(--fg) {MIX["key_badge"]}%, var(--bg));"""

    lines = [
        "<style>",
        f"  {font_import}",
        f"  text {{ font-family: '{font}', system-ui, sans-serif; }}",
        f"  .mono {{ font-family: {MONO_FONT_STACK}; }}",
        f"  svg {{{derived_vars}",
        "  }",
        "</style>",
    ]
    return "\n".join(lines)


def svg_open_tag(
    width: float,
    height: float,
    colors: DiagramColors,
    transparent: bool = False,
) -> str:
    """Build the SVG opening tag with CSS variables set as inline styles."""
    vars_parts = [
        f"--bg:{colors.bg}",
        f"--fg:{colors.fg}",
    ]
    if colors.line:
        vars_parts.append(f"--line:{colors.line}")
    if colors.accent:
        vars_parts.append(f"--accent:{colors.accent}")
    if colors.muted:
        vars_parts.append(f"--muted:{colors.muted}")
    if colors.surface:
        vars_parts.append(f"--surface:{colors.surface}")
    if colors.border:
        vars_parts.append(f"--border:{colors.border}")

    vars_str = ";".join(vars_parts)
    bg_style = "" if transparent else ";background:var(--bg)"

    return (
        f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 {width} {height}" '
        f'width="{width}" height="{height}" style="{vars_str}{bg_style}">'
    )

"""Color decorators for literal vector constructors."""

from __future__ import annotations

import re

from metal_lsp.analysis.masking import mask_source
from metal_lsp.documents.positions import LineIndex

_NUMBER = r"([0-9]*\.?[0-9]+(?:[eE][+-]?[0-9]+)?)[fFhH]?"
_COLOR_CONSTRUCTOR_RE = re.compile(
    rf"\b(float|half)([34])\s*\(\s*{_NUMBER}\s*,\s*{_NUMBER}\s*,\s*{_NUMBER}\s*(?:,\s*{_NUMBER}\s*)?\)"
)
_CONSTRUCTOR_PREFIX_RE = re.compile(r"^\s*(float|half)([34])\s*\(")


def document_colors(source: str, line_index: LineIndex) -> list[dict[str, object]]:
    """Find `float3/float4/half3/half4` constructors whose components lie in [0, 1]."""
    colors: list[dict[str, object]] = []
    masked = mask_source(source, mask_char_literals=True)
    for match in _COLOR_CONSTRUCTOR_RE.finditer(masked):
        size = int(match.group(2))
        raw_alpha = match.group(6)
        if (size == 4) != (raw_alpha is not None):
            continue
        components = [float(match.group(group)) for group in (3, 4, 5)]
        components.append(1.0 if raw_alpha is None else float(raw_alpha))
        if any(value < 0.0 or value > 1.0 for value in components):
            continue
        red, green, blue, alpha = components
        colors.append(
            {
                "range": {
                    "start": line_index.position_at(match.start()).to_lsp(),
                    "end": line_index.position_at(match.end()).to_lsp(),
                },
                "color": {"red": red, "green": green, "blue": blue, "alpha": alpha},
            }
        )
    return colors


def color_presentations(
    color: dict[str, object],
    edit_range: dict[str, object],
    current_text: str,
) -> list[dict[str, object]]:
    """Offer a constructor spelling that keeps the scalar type of the edited text."""
    red, green, blue, alpha = (
        _component(color, "red"),
        _component(color, "green"),
        _component(color, "blue"),
        _component(color, "alpha"),
    )
    scalar = "float"
    size = 4
    prefix = _CONSTRUCTOR_PREFIX_RE.match(current_text)
    if prefix is not None:
        scalar = prefix.group(1)
        size = int(prefix.group(2))
    if alpha < 1.0:
        size = 4

    values = [red, green, blue] + ([alpha] if size == 4 else [])
    label = f"{scalar}{size}({', '.join(format_component(value) for value in values)})"
    return [{"label": label, "textEdit": {"range": edit_range, "newText": label}}]


def format_component(value: float) -> str:
    """Format a channel with up to three decimals, always keeping one."""
    text = f"{value:.3f}".rstrip("0")
    if text.endswith("."):
        text += "0"
    return text


def _component(color: dict[str, object], key: str) -> float:
    value = color.get(key)
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValueError(f"color.{key} must be a number")
    return min(1.0, max(0.0, float(value)))

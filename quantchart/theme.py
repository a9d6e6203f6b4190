from __future__ import annotations

from dataclasses import asdict, dataclass, fields
import re
from typing import Any, Mapping

from quantchart.errors import ChartConfigError

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}([0-9a-fA-F]{2})?$")

CATEGORICAL_COLORS: tuple[str, ...] = (
    "#006EB5",
    "#5DD4F0",
    "#02A6D5",
    "#E26B8D",
    "#F6C646",
    "#59BA47",
    "#FBC412",
    "#A06BA8",
    "#B5651D",
    "#7A8F98",
)


@dataclass(frozen=True)
class Theme:
    """Color and font tokens handed to every renderer."""

    axis_text: str = "#55606E"
    grid: str = "#A9B1B7"
    baseline: str = "#55606E"
    reference_line: str = "#55606E"
    highlight_area: str = "#D4D6D8"
    hover_guide: str = "#212121"
    no_data: str = "#D4D6D8"
    single_series: str = "#006EB5"
    value_text_inside: str = "#FFFFFF"
    map_border: str = "#A9B1B7"
    tooltip_background: str = "#F7F7F7"
    background: str = "#FFFFFF"
    categorical: tuple[str, ...] = CATEGORICAL_COLORS
    font_family: str = "DejaVu Sans"
    font_size_px: float = 12.0


DEFAULT_THEME = Theme()

_COLOR_TOKENS = tuple(
    f.name for f in fields(Theme) if f.name not in {"categorical", "font_family", "font_size_px"}
)


def is_hex_color(value: Any) -> bool:
    return isinstance(value, str) and bool(_HEX_COLOR.match(value))


def resolve_theme(overrides: Mapping[str, Any] | None = None) -> Theme:
    """Validate and merge token overrides against the default theme."""

    raw: dict[str, Any] = asdict(DEFAULT_THEME)
    if overrides:
        for key, value in overrides.items():
            if key not in raw:
                raise ChartConfigError(f"Unknown theme token: {key}")
            raw[key] = value

    for key in _COLOR_TOKENS:
        if not is_hex_color(raw[key]):
            raise ChartConfigError(f"Token `{key}` must be a hex color (#RRGGBB or #RRGGBBAA)")

    palette = tuple(raw["categorical"])
    if not palette:
        raise ChartConfigError("Token `categorical` must hold at least one color")
    for color in palette:
        if not is_hex_color(color):
            raise ChartConfigError(f"Token `categorical` contains a non-hex color: {color!r}")

    if not isinstance(raw["font_family"], str) or not raw["font_family"].strip():
        raise ChartConfigError("Token `font_family` must be a non-empty string")

    if not isinstance(raw["font_size_px"], (int, float)) or float(raw["font_size_px"]) <= 0:
        raise ChartConfigError("Token `font_size_px` must be a positive number")

    raw["categorical"] = palette
    raw["font_size_px"] = float(raw["font_size_px"])
    return Theme(**raw)


def hex_to_rgba(color: str, opacity: float = 1.0) -> tuple[int, int, int, int]:
    if not is_hex_color(color):
        raise ChartConfigError(f"not a hex color: {color!r}")
    r = int(color[1:3], 16)
    g = int(color[3:5], 16)
    b = int(color[5:7], 16)
    a = int(color[7:9], 16) if len(color) == 9 else 255
    a = int(round(a * max(0.0, min(1.0, opacity))))
    return (r, g, b, a)

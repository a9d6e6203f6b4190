from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field, fields
from typing import Any, Literal, Mapping

from quantchart.data import ReferenceMarker
from quantchart.errors import ChartConfigError
from quantchart.theme import is_hex_color


Variant = Literal["line", "multi_line", "bar", "dumbbell", "scatter", "area", "circle_packing", "map"]
VARIANTS: tuple[str, ...] = ("line", "multi_line", "bar", "dumbbell", "scatter", "area", "circle_packing", "map")

Orientation = Literal["vertical", "horizontal"]
BarMode = Literal["simple", "stacked", "grouped"]
MapKind = Literal["choropleth", "dot_density"]

CARTESIAN_FALLBACK_SIZE = (620, 480)
MAP_FALLBACK_SIZE = (760, 570)


@dataclass(frozen=True)
class Margins:
    top: float = 20.0
    right: float = 20.0
    bottom: float = 25.0
    left: float = 20.0

    def __post_init__(self) -> None:
        for name in ("top", "right", "bottom", "left"):
            value = getattr(self, name)
            if not isinstance(value, (int, float)) or value < 0:
                raise ChartConfigError(f"margin `{name}` must be a non-negative number")


@dataclass(frozen=True)
class ChartConfig:
    width: int | None = None
    height: int | None = None
    relative_height: float | None = None
    fallback_size: tuple[int, int] = CARTESIAN_FALLBACK_SIZE
    margins: Margins = field(default_factory=Margins)
    colors: tuple[str, ...] | None = None
    color_domain: tuple[str, ...] | None = None
    labels: tuple[str, ...] = ()
    x_tick_count: int = 5
    y_tick_count: int = 5
    point_radius: float = 5.0
    min_radius: float = 0.25
    truncate_by: int = 999
    bar_padding: float = 0.25
    show_ticks: bool = True
    show_labels: bool = True
    show_values: bool = True
    prefix: str = ""
    suffix: str = ""
    date_format: str = "%Y"
    orientation: Orientation = "vertical"
    bar_mode: BarMode = "simple"
    map_kind: MapKind = "choropleth"
    dim_opacity: float = 0.3
    value_label_min_px: float = 20.0
    tooltip_offset_x: float = 20.0
    tooltip_offset_y: float = 40.0
    ref_values: tuple[ReferenceMarker, ...] = ()
    highlighted_labels: tuple[str, ...] = ()
    highlight_area: tuple[float | None, ...] | None = None
    thresholds: tuple[Any, ...] = ()
    categorical: bool = False
    map_border_width: float = 0.5
    map_scale: float = 190.0
    map_center: tuple[float, float] = (10.0, 10.0)


VARIANT_DEFAULTS: dict[str, ChartConfig] = {
    "line": ChartConfig(margins=Margins(top=20, right=30, bottom=25, left=50), show_values=False),
    "multi_line": ChartConfig(margins=Margins(top=20, right=50, bottom=25, left=50)),
    "bar": ChartConfig(margins=Margins(top=25, right=40, bottom=25, left=100), orientation="horizontal"),
    "dumbbell": ChartConfig(margins=Margins(top=25, right=40, bottom=25, left=100), orientation="horizontal", point_radius=3.0),
    "scatter": ChartConfig(margins=Margins(top=10, right=10, bottom=50, left=50), show_labels=False),
    "area": ChartConfig(margins=Margins(top=20, right=30, bottom=25, left=50), x_tick_count=10),
    "circle_packing": ChartConfig(margins=Margins(top=0, right=0, bottom=0, left=0)),
    "map": ChartConfig(margins=Margins(top=0, right=0, bottom=0, left=0), fallback_size=MAP_FALLBACK_SIZE),
}

# Orientation-specific margins, applied when the caller flips orientation without giving margins.
_VERTICAL_MARGINS = Margins(top=20, right=20, bottom=25, left=20)

_MARGIN_KEYS = {"top_margin": "top", "right_margin": "right", "bottom_margin": "bottom", "left_margin": "left"}
_TUPLE_FIELDS = ("colors", "color_domain", "labels", "ref_values", "highlighted_labels", "thresholds")


def resolve_config(variant: str, overrides: Mapping[str, Any] | None = None) -> ChartConfig:
    """Merge caller overrides with the enumerated defaults of one chart variant."""

    if variant not in VARIANT_DEFAULTS:
        raise ChartConfigError(f"unknown chart variant: {variant!r}")
    base = VARIANT_DEFAULTS[variant]
    raw: dict[str, Any] = {f.name: getattr(base, f.name) for f in fields(base)}
    margin_overrides: dict[str, Any] = {}
    margins_given = False

    for key, value in (overrides or {}).items():
        if key in _MARGIN_KEYS:
            if value is not None:
                margin_overrides[_MARGIN_KEYS[key]] = value
            continue
        if key not in raw:
            raise ChartConfigError(f"Unknown chart option: {key}")
        if key == "margins":
            margins_given = True
            if isinstance(value, Margins):
                raw["margins"] = value
            elif isinstance(value, Mapping):
                margin_overrides.update(value)
            else:
                raise ChartConfigError("`margins` must be a Margins or a mapping")
            continue
        if value is None and getattr(base, key) is not None:
            # None means "use the variant default" for every option that has one.
            continue
        raw[key] = value

    if (
        variant in {"bar", "dumbbell"}
        and raw["orientation"] == "vertical"
        and not margins_given
        and raw["margins"] == base.margins
    ):
        raw["margins"] = _VERTICAL_MARGINS
    if margin_overrides:
        raw["margins"] = dataclasses.replace(raw["margins"], **{k: float(v) for k, v in margin_overrides.items()})

    for key in _TUPLE_FIELDS:
        if raw[key] is not None:
            if isinstance(raw[key], str):
                raise ChartConfigError(f"`{key}` must be a sequence, not a string")
            raw[key] = tuple(raw[key])
    if raw["highlight_area"] is not None:
        raw["highlight_area"] = tuple(raw["highlight_area"])

    config = ChartConfig(**raw)
    _validate(config)
    return config


def _validate(config: ChartConfig) -> None:
    for name in ("width", "height"):
        value = getattr(config, name)
        if value is not None and (not isinstance(value, (int, float)) or value <= 0):
            raise ChartConfigError(f"`{name}` must be a positive number")
    if config.relative_height is not None and config.relative_height <= 0:
        raise ChartConfigError("`relative_height` must be > 0")
    if config.orientation not in ("vertical", "horizontal"):
        raise ChartConfigError(f"unknown orientation: {config.orientation!r}")
    if config.bar_mode not in ("simple", "stacked", "grouped"):
        raise ChartConfigError(f"unknown bar mode: {config.bar_mode!r}")
    if config.map_kind not in ("choropleth", "dot_density"):
        raise ChartConfigError(f"unknown map kind: {config.map_kind!r}")
    if config.x_tick_count <= 0 or config.y_tick_count <= 0:
        raise ChartConfigError("tick counts must be > 0")
    if not 0.0 <= config.bar_padding < 1.0:
        raise ChartConfigError("`bar_padding` must be in [0, 1)")
    if not 0.0 <= config.dim_opacity <= 1.0:
        raise ChartConfigError("`dim_opacity` must be in [0, 1]")
    if config.truncate_by <= 0:
        raise ChartConfigError("`truncate_by` must be > 0")
    if config.min_radius < 0 or config.point_radius < config.min_radius:
        raise ChartConfigError("radius bounds must satisfy 0 <= min_radius <= point_radius")
    if config.colors is not None:
        if not config.colors:
            raise ChartConfigError("`colors` must not be empty")
        for color in config.colors:
            if not is_hex_color(color):
                raise ChartConfigError(f"`colors` contains a non-hex color: {color!r}")
    if config.highlight_area is not None and len(config.highlight_area) not in (2, 4):
        raise ChartConfigError("`highlight_area` takes 2 (x) or 4 (x, y) bounds")
    for marker in config.ref_values:
        if not isinstance(marker, ReferenceMarker):
            raise ChartConfigError("`ref_values` must hold ReferenceMarker instances")

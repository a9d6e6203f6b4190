from __future__ import annotations

from typing import Callable

from quantchart.config import ChartConfig
from quantchart.renderers.area import render_area
from quantchart.renderers.bar import render_bar
from quantchart.renderers.circle_packing import pack_siblings, render_circle_packing
from quantchart.renderers.dumbbell import render_dumbbell
from quantchart.renderers.line import render_line
from quantchart.renderers.map import equirectangular, render_map
from quantchart.renderers.multi_line import render_multi_line
from quantchart.renderers.scatter import render_scatter

RENDERERS: dict[str, Callable[..., object]] = {
    "line": render_line,
    "multi_line": render_multi_line,
    "bar": render_bar,
    "dumbbell": render_dumbbell,
    "scatter": render_scatter,
    "area": render_area,
    "circle_packing": render_circle_packing,
    "map": render_map,
}

# Variants whose hit testing goes through the memoized Voronoi partition.
TESSELLATED = frozenset({"scatter", "map"})


def data_shape(variant: str, config: ChartConfig) -> str:
    """Record shape a variant consumes: "points", "composites" or "geo"."""

    if variant == "map":
        return "geo"
    if variant in ("multi_line", "area", "dumbbell"):
        return "composites"
    if variant == "bar" and config.bar_mode != "simple":
        return "composites"
    return "points"


__all__ = [
    "RENDERERS",
    "TESSELLATED",
    "data_shape",
    "equirectangular",
    "pack_siblings",
    "render_area",
    "render_bar",
    "render_circle_packing",
    "render_dumbbell",
    "render_line",
    "render_map",
    "render_multi_line",
    "render_scatter",
]

from __future__ import annotations

import dataclasses
from typing import Any, Sequence

from quantchart.config import ChartConfig
from quantchart.data import DataPoint, ReferenceMarker
from quantchart.geometry import Circle, HitRegion, Primitive, Rect, RenderResult, Text, value_axis
from quantchart.hit_testing import TessellationCache, VoronoiHitTester
from quantchart.renderers.base import EMPTY_STATE, PlotFrame, legend_for, reference_lines, series_colors
from quantchart.scales import LinearScale, build_radius_scale, build_value_scale
from quantchart.selection import HighlightState, opacity_for
from quantchart.sizing import Size
from quantchart.theme import Theme


POINT_FILL_OPACITY = 0.6
LABEL_FONT_SIZE = 10.0


def render_scatter(
    data: Sequence[DataPoint],
    size: Size,
    config: ChartConfig,
    theme: Theme,
    state: HighlightState = EMPTY_STATE,
    *,
    cache: TessellationCache | None = None,
    source: Any = None,
) -> RenderResult:
    """Bubble/scatter plot with a Voronoi partition for pointer hits.

    `cache` keeps the partition across pointer moves; it is keyed on `source`
    (the data object, `data` itself when omitted) and the plot size.
    """

    frame = PlotFrame(size, config)
    points = [p for p in data if p.y is not None and isinstance(p.x, float)]
    if not size.measured or not points:
        return frame.empty()

    gw, gh = frame.width, frame.height
    x = build_value_scale([p.x for p in points], gw, invert=False, tick_count=config.x_tick_count)
    y = build_value_scale([p.y for p in points], gh, tick_count=config.y_tick_count)
    radius = build_radius_scale([p.radius for p in points], config.min_radius, config.point_radius)
    binding = series_colors((p.category for p in points), config, theme)

    prims: list[Primitive] = []
    band = _highlight_rect(config.highlight_area, x, y, gw, gh, theme.highlight_area)
    if band is not None:
        prims.append(band)
    prims.extend(value_axis(y, extent=gw, theme=theme, tick_count=config.y_tick_count, show_ticks=config.show_ticks))
    prims.extend(value_axis(x, extent=gh, theme=theme, orientation="horizontal", tick_count=config.x_tick_count, show_ticks=config.show_ticks))

    ordered = points
    if radius is not None:
        # Largest first so small bubbles stay on top.
        ordered = sorted(points, key=lambda p: p.radius or 0.0, reverse=True)
    for p in ordered:
        r = config.point_radius if radius is None else radius(p.radius or 0.0)
        cx, cy = x(p.x), y(p.y)
        color = binding.color_of(p.category)
        opacity = opacity_for(
            state,
            category=p.category,
            label=p.label,
            is_hovered=p is state.hovered,
            highlighted_labels=config.highlighted_labels,
            dim_opacity=config.dim_opacity,
        )
        prims.append(Circle(cx, cy, r, fill=color, stroke=color, fill_opacity=POINT_FILL_OPACITY, opacity=opacity, datum=p))
        if p.label and (config.show_labels or p.label in config.highlighted_labels):
            prims.append(Text(cx + r + 3, cy, p.label, fill=color, font_size=LABEL_FONT_SIZE, dy=4, opacity=opacity, role="label", datum=p))

    markers = _expand_pairs(config.ref_values)
    prims.extend(reference_lines(markers, x, axis="x", width=gw, height=gh, theme=theme))
    prims.extend(reference_lines(markers, y, axis="y", width=gw, height=gh, theme=theme))

    def build() -> VoronoiHitTester:
        return VoronoiHitTester(
            x.map_many([p.x for p in ordered]),
            y.map_many([p.y for p in ordered]),
            ordered,
            (0.0, 0.0, gw, gh),
        )

    tester = cache.get(data if source is None else source, (gw, gh), build) if cache is not None else build()
    for i, p in enumerate(ordered):
        cell = tester.cell(i)
        if cell is not None and cell.shape[0] >= 3:
            prims.append(HitRegion(tuple((float(a), float(b)) for a, b in cell), datum=p))

    return frame.result(
        prims,
        hit_tester=tester,
        scales={"x": x, "y": y, "radius": radius},
        legend=legend_for(binding, state, config.dim_opacity),
    )


def _expand_pairs(markers: Sequence[ReferenceMarker]) -> list[ReferenceMarker]:
    """A marker carrying `value2` stands for an x line and a y line."""

    out: list[ReferenceMarker] = []
    for marker in markers:
        if marker.value2 is None:
            out.append(marker)
            continue
        out.append(dataclasses.replace(marker, axis="x", value2=None))
        out.append(dataclasses.replace(marker, axis="y", value=marker.value2, value2=None))
    return out


def _highlight_rect(
    area: Sequence[float | None] | None,
    x: LinearScale,
    y: LinearScale,
    graph_width: float,
    graph_height: float,
    fill: str,
) -> Rect | None:
    """Shaded box given in data units as (x0, x1[, y0, y1]); None bounds run to the plot edge."""

    if area is None or all(v is None for v in area):
        return None
    x0, x1 = area[0], area[1]
    y0, y1 = (area[2], area[3]) if len(area) == 4 else (None, None)
    left = x(x0) if x0 is not None else 0.0
    right = x(x1) if x1 is not None else graph_width
    top = y(y1) if y1 is not None else 0.0
    bottom = y(y0) if y0 is not None else graph_height
    return Rect(left, top, max(0.0, right - left), max(0.0, bottom - top), fill=fill, role="highlight")

from __future__ import annotations

from typing import Sequence

from quantchart.config import ChartConfig
from quantchart.data import DataPoint
from quantchart.geometry import HOVER_DASH, Circle, Line, Path, Primitive, Rect, RenderResult, Text, monotone_x_path, value_axis
from quantchart.hit_testing import OrderedHitTester
from quantchart.renderers.base import (
    EMPTY_STATE,
    PlotFrame,
    defined_runs,
    ordered_x_scale,
    reference_lines,
    value_text,
    x_axis_labels,
    x_key,
)
from quantchart.scales import build_value_scale
from quantchart.selection import HighlightState
from quantchart.sizing import Size
from quantchart.theme import Theme


def point_radius_for_density(graph_width: float, count: int) -> float:
    """Marker radius shrinks as samples crowd: 0, 2 or 4 px."""

    if count <= 0:
        return 0.0
    spacing = graph_width / count
    if spacing < 5:
        return 0.0
    if spacing < 20:
        return 2.0
    return 4.0


def highlight_band(area: Sequence[float | None] | None, graph_width: float, graph_height: float, fill: str) -> Rect | None:
    """Shaded x band given as fractions of the plot width."""

    if area is None or (area[0] is None and area[1] is None):
        return None
    x0 = (area[0] or 0.0) * graph_width
    x1 = area[1] * graph_width if area[1] is not None else graph_width
    return Rect(x0, 0.0, max(0.0, x1 - x0), graph_height, fill=fill, role="highlight")


def render_line(
    data: Sequence[DataPoint],
    size: Size,
    config: ChartConfig,
    theme: Theme,
    state: HighlightState = EMPTY_STATE,
) -> RenderResult:
    frame = PlotFrame(size, config)
    points = sorted((p for p in data if p.x is not None), key=lambda p: x_key(p.x))
    if not size.measured or not points:
        return frame.empty()

    gw, gh = frame.width, frame.height
    x = ordered_x_scale([p.x for p in points], gw)
    y = build_value_scale([p.y for p in points], gh, tick_count=config.y_tick_count)
    color = config.colors[0] if config.colors else theme.single_series

    prims: list[Primitive] = []
    band = highlight_band(config.highlight_area, gw, gh, theme.highlight_area)
    if band is not None:
        prims.append(band)
    prims.extend(value_axis(y, extent=gw + config.margins.right, theme=theme, tick_count=config.y_tick_count, show_ticks=config.show_ticks, overhang=20))
    prims.extend(x_axis_labels(x, baseline_y=gh, theme=theme, config=config))

    sampled = [(x(p.x), None if p.y is None else y(p.y)) for p in points]
    for run in defined_runs(sampled):
        prims.append(Path(monotone_x_path(run), stroke=color, stroke_width=2.0))

    hovered = state.hovered if isinstance(state.hovered, DataPoint) and state.hovered.x is not None else None
    if hovered is not None:
        hx = x(hovered.x)
        prims.append(Line(hx, 0.0, hx, gh, stroke=theme.hover_guide, dash=HOVER_DASH, role="guide", datum=hovered))

    radius = point_radius_for_density(gw, len(points))
    for p, (px, py) in zip(points, sampled, strict=True):
        if py is None:
            continue
        if radius > 0:
            prims.append(Circle(px, py, radius, fill=color, datum=p))
        if config.show_values:
            prims.append(Text(px, py, value_text(p.y, config), anchor="middle", bold=True, fill=theme.axis_text, dy=-8, role="value", datum=p))

    prims.extend(reference_lines(config.ref_values, y, axis="y", width=gw, height=gh, theme=theme, overhang=20))

    tester = OrderedHitTester([x_key(p.x) for p in points], points, lambda px: x_key(x.invert(px)))
    return frame.result(prims, hit_tester=tester, scales={"x": x, "y": y})

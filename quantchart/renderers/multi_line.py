from __future__ import annotations

from typing import Sequence

from quantchart.config import ChartConfig
from quantchart.data import CompositePoint
from quantchart.errors import ChartConfigError
from quantchart.geometry import HOVER_DASH, Circle, Line, Path, Primitive, RenderResult, Text, monotone_x_path, value_axis
from quantchart.hit_testing import OrderedHitTester
from quantchart.renderers.base import (
    EMPTY_STATE,
    PlotFrame,
    legend_from_pairs,
    ordered_x_scale,
    positional_colors,
    reference_lines,
    x_axis_labels,
    x_key,
)
from quantchart.renderers.line import point_radius_for_density
from quantchart.scales import build_value_scale
from quantchart.selection import HighlightState, opacity_for
from quantchart.sizing import Size
from quantchart.theme import Theme


def series_count(rows: Sequence[CompositePoint]) -> int:
    return max((len(r.values) for r in rows), default=0)


def render_multi_line(
    data: Sequence[CompositePoint],
    size: Size,
    config: ChartConfig,
    theme: Theme,
    state: HighlightState = EMPTY_STATE,
) -> RenderResult:
    """One monotone line per component index, labelled at its last sample.

    Absent values are dropped from their series, so the line bridges the gap.
    """

    frame = PlotFrame(size, config)
    rows = sorted((r for r in data if r.x is not None), key=lambda r: x_key(r.x))
    n_series = series_count(rows)
    if len(config.labels) < n_series:
        raise ChartConfigError(f"multi-line chart needs {n_series} labels, got {len(config.labels)}")
    if not size.measured or not rows:
        return frame.empty()

    gw, gh = frame.width, frame.height
    x = ordered_x_scale([r.x for r in rows], gw)
    y = build_value_scale([v for r in rows for v in r.values], gh, tick_count=config.y_tick_count)
    colors = positional_colors(n_series, config, theme)
    labels = config.labels[:n_series]

    prims: list[Primitive] = []
    prims.extend(value_axis(y, extent=gw + config.margins.right, theme=theme, tick_count=config.y_tick_count, show_ticks=config.show_ticks, overhang=20))
    prims.extend(x_axis_labels(x, baseline_y=gh, theme=theme, config=config))

    radius = point_radius_for_density(gw, len(rows))
    for i in range(n_series):
        # A hovered row spans every series, so hover lifts legend dimming.
        opacity = opacity_for(state, category=labels[i], is_hovered=state.hovered is not None, dim_opacity=config.dim_opacity)
        series = [(r, x(r.x), y(r.values[i])) for r in rows if i < len(r.values) and r.values[i] is not None]
        if not series:
            continue
        prims.append(Path(monotone_x_path([(px, py) for _, px, py in series]), stroke=colors[i], stroke_width=2.0, opacity=opacity, datum=labels[i]))
        if radius > 0:
            prims.extend(Circle(px, py, radius, fill=colors[i], opacity=opacity, datum=r) for r, px, py in series)
        if config.show_labels:
            _, lx, ly = series[-1]
            prims.append(Text(lx, ly, labels[i], fill=colors[i], bold=True, dy=4, opacity=opacity, role="label", datum=labels[i]))

    hovered = state.hovered if isinstance(state.hovered, CompositePoint) and state.hovered.x is not None else None
    if hovered is not None:
        hx = x(hovered.x)
        prims.append(Line(hx, 0.0, hx, gh, stroke=theme.hover_guide, dash=HOVER_DASH, role="guide", datum=hovered))

    prims.extend(reference_lines(config.ref_values, y, axis="y", width=gw, height=gh, theme=theme, overhang=20))

    tester = OrderedHitTester([x_key(r.x) for r in rows], rows, lambda px: x_key(x.invert(px)))
    legend = legend_from_pairs(zip(labels, colors, strict=True), state, config.dim_opacity)
    return frame.result(prims, hit_tester=tester, scales={"x": x, "y": y}, legend=legend)

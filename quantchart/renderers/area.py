from __future__ import annotations

from typing import Any, Sequence

from quantchart.config import ChartConfig
from quantchart.data import CompositePoint
from quantchart.errors import ChartConfigError
from quantchart.geometry import HOVER_DASH, Line, Path, Primitive, RenderResult, cumulative_sums, monotone_x_path, value_axis
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
from quantchart.scales import build_value_scale
from quantchart.selection import HighlightState, opacity_for
from quantchart.sizing import Size
from quantchart.theme import Theme


def area_commands(upper: Sequence[tuple[float, float]], lower: Sequence[tuple[float, float]]) -> tuple[tuple[Any, ...], ...]:
    """Closed band between two monotone edges sampled at the same x positions."""

    top = monotone_x_path(upper)
    bottom = monotone_x_path(list(reversed(lower)))
    if not top or not bottom:
        return ()
    return top + (("L", bottom[0][1], bottom[0][2]),) + bottom[1:] + (("Z",),)


def render_area(
    data: Sequence[CompositePoint],
    size: Size,
    config: ChartConfig,
    theme: Theme,
    state: HighlightState = EMPTY_STATE,
) -> RenderResult:
    frame = PlotFrame(size, config)
    rows = sorted((r for r in data if r.x is not None), key=lambda r: x_key(r.x))
    count = max((len(r.values) for r in rows), default=0)
    if config.labels and len(config.labels) < count:
        raise ChartConfigError(f"area chart needs {count} labels, got {len(config.labels)}")
    if not size.measured or not rows:
        return frame.empty()

    gw, gh = frame.width, frame.height
    x = ordered_x_scale([r.x for r in rows], gw)
    # Absent components add nothing to the stack.
    stacks = [cumulative_sums(tuple(r.values) + (None,) * (count - len(r.values))) for r in rows]
    y = build_value_scale([v for s in stacks for v in s], gh, tick_count=config.y_tick_count)
    colors = positional_colors(count, config, theme)
    labels = config.labels[:count]

    prims: list[Primitive] = []
    prims.extend(value_axis(y, extent=gw, theme=theme, tick_count=config.y_tick_count, show_ticks=config.show_ticks))
    prims.extend(x_axis_labels(x, baseline_y=gh, theme=theme, config=config))

    xs = [x(r.x) for r in rows]
    for j in range(count):
        upper = [(px, y(s[j])) for px, s in zip(xs, stacks, strict=True)]
        lower = [(px, y(s[j - 1] if j > 0 else 0.0)) for px, s in zip(xs, stacks, strict=True)]
        opacity = 1.0
        if labels:
            opacity = opacity_for(state, category=labels[j], is_hovered=state.hovered is not None, dim_opacity=config.dim_opacity)
        prims.append(Path(area_commands(upper, lower), fill=colors[j], stroke=None, opacity=opacity, datum=labels[j] if labels else j))

    hovered = state.hovered if isinstance(state.hovered, CompositePoint) and state.hovered.x is not None else None
    if hovered is not None:
        hx = x(hovered.x)
        prims.append(Line(hx, 0.0, hx, gh, stroke=theme.hover_guide, dash=HOVER_DASH, role="guide", datum=hovered))

    prims.extend(reference_lines(config.ref_values, y, axis="y", width=gw, height=gh, theme=theme))

    tester = OrderedHitTester([x_key(r.x) for r in rows], rows, lambda px: x_key(x.invert(px)))
    legend = legend_from_pairs(zip(labels, colors, strict=False), state, config.dim_opacity) if labels else ()
    return frame.result(prims, hit_tester=tester, scales={"x": x, "y": y}, legend=legend)

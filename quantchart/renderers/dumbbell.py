from __future__ import annotations

from typing import Sequence

from quantchart.config import ChartConfig
from quantchart.data import CompositePoint
from quantchart.errors import ChartConfigError
from quantchart.geometry import Circle, Line, Primitive, RenderResult, Text, truncate_label, value_axis
from quantchart.hit_testing import BandHitTester
from quantchart.renderers.base import EMPTY_STATE, PlotFrame, legend_from_pairs, positional_colors, value_text
from quantchart.scales import BandScale, build_value_scale
from quantchart.selection import HighlightState, opacity_for
from quantchart.sizing import Size
from quantchart.theme import Theme


def render_dumbbell(
    data: Sequence[CompositePoint],
    size: Size,
    config: ChartConfig,
    theme: Theme,
    state: HighlightState = EMPTY_STATE,
) -> RenderResult:
    """Dots per component joined by a connector from the smallest to the largest value."""

    frame = PlotFrame(size, config)
    rows = list(data)
    count = max((len(r.values) for r in rows), default=0)
    if config.labels and len(config.labels) < count:
        raise ChartConfigError(f"dumbbell chart needs {count} labels, got {len(config.labels)}")
    if not size.measured or not rows:
        return frame.empty()

    vertical = config.orientation == "vertical"
    band_extent, value_extent = (frame.width, frame.height) if vertical else (frame.height, frame.width)
    band = BandScale(keys=tuple(str(i) for i in range(len(rows))), range=(0.0, band_extent), padding_inner=config.bar_padding)
    value = build_value_scale([v for r in rows for v in r.values], value_extent, invert=vertical, tick_count=config.y_tick_count)
    colors = positional_colors(count, config, theme)

    def at(along_band: float, along_value: float) -> tuple[float, float]:
        return (along_band, along_value) if vertical else (along_value, along_band)

    prims: list[Primitive] = list(
        value_axis(
            value,
            extent=band_extent,
            theme=theme,
            orientation="vertical" if vertical else "horizontal",
            tick_count=config.y_tick_count,
            show_ticks=config.show_ticks,
        )
    )

    for i, row in enumerate(rows):
        center = band.position(i) + band.bandwidth / 2.0
        defined = [(j, v) for j, v in enumerate(row.values) if v is not None]
        row_opacity = opacity_for(state, label=row.label, is_hovered=row is state.hovered, dim_opacity=config.dim_opacity)
        if len(defined) >= 2:
            lo = min(v for _, v in defined)
            hi = max(v for _, v in defined)
            x1, y1 = at(center, value(lo))
            x2, y2 = at(center, value(hi))
            prims.append(Line(x1, y1, x2, y2, stroke=theme.grid, stroke_width=2.0, opacity=row_opacity, datum=row))
        for j, v in defined:
            category = config.labels[j] if config.labels else None
            opacity = opacity_for(
                state,
                category=category,
                label=row.label,
                is_hovered=row is state.hovered,
                dim_opacity=config.dim_opacity,
            )
            cx, cy = at(center, value(v))
            prims.append(Circle(cx, cy, config.point_radius, fill=colors[j], opacity=opacity, datum=row))
            if config.show_values:
                if vertical:
                    prims.append(Text(cx + config.point_radius + 3, cy, value_text(v, config), fill=colors[j], dy=4, opacity=opacity, role="value", datum=row))
                else:
                    prims.append(Text(cx, cy, value_text(v, config), anchor="middle", fill=colors[j], dy=-config.point_radius - 3, opacity=opacity, role="value", datum=row))
        if config.show_labels:
            text = truncate_label(row.label, config.truncate_by)
            if vertical:
                prims.append(Text(center, frame.height, text, anchor="middle", fill=theme.axis_text, dy=15, role="label", datum=row))
            else:
                prims.append(Text(-5.0, center, text, anchor="end", fill=theme.axis_text, dy=4, role="label", datum=row))

    legend = ()
    if config.labels:
        legend = legend_from_pairs(zip(config.labels[:count], colors, strict=True), state, config.dim_opacity)
    tester = BandHitTester(band, rows, axis="x" if vertical else "y")
    return frame.result(prims, hit_tester=tester, scales={"band": band, "value": value}, legend=legend)

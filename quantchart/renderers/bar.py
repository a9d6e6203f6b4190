from __future__ import annotations

import dataclasses
from typing import Any, Sequence

from quantchart.config import ChartConfig
from quantchart.data import CompositePoint, DataPoint
from quantchart.errors import ChartConfigError
from quantchart.geometry import (
    LegendEntry,
    Primitive,
    Rect,
    RenderResult,
    Text,
    cumulative_sums,
    stacked_segments,
    truncate_label,
    value_axis,
    value_label_visible,
)
from quantchart.hit_testing import BandHitTester
from quantchart.renderers.base import (
    EMPTY_STATE,
    PlotFrame,
    legend_for,
    legend_from_pairs,
    positional_colors,
    reference_lines,
    series_colors,
    value_text,
)
from quantchart.scales import BandScale, LinearScale, build_value_scale
from quantchart.selection import HighlightState, opacity_for
from quantchart.sizing import Size
from quantchart.theme import Theme


GROUP_PADDING = 0.1


class _Layout:
    """Maps (band offset, band length, value span) onto a rect for either orientation."""

    def __init__(self, vertical: bool, width: float, height: float) -> None:
        self.vertical = vertical
        self.band_extent = width if vertical else height
        self.value_extent = height if vertical else width

    def rect(self, pos: float, length: float, p0: float, p1: float, **style: Any) -> Rect:
        lo, span = min(p0, p1), abs(p1 - p0)
        if self.vertical:
            return Rect(pos, lo, length, span, **style)
        return Rect(lo, pos, span, length, **style)

    def point(self, along_band: float, along_value: float) -> tuple[float, float]:
        if self.vertical:
            return (along_band, along_value)
        return (along_value, along_band)


def render_bar(
    data: Sequence[DataPoint] | Sequence[CompositePoint],
    size: Size,
    config: ChartConfig,
    theme: Theme,
    state: HighlightState = EMPTY_STATE,
) -> RenderResult:
    frame = PlotFrame(size, config)
    rows = list(data)
    if config.bar_mode != "simple" and config.labels:
        n = max((len(r.values) for r in rows), default=0)
        if len(config.labels) < n:
            raise ChartConfigError(f"{config.bar_mode} bar chart needs {n} labels, got {len(config.labels)}")
    if not size.measured or not rows:
        return frame.empty()

    vertical = config.orientation == "vertical"
    layout = _Layout(vertical, frame.width, frame.height)
    band = BandScale(
        keys=tuple(str(i) for i in range(len(rows))),
        range=(0.0, layout.band_extent),
        padding_inner=config.bar_padding,
    )

    if config.bar_mode == "simple":
        values = [r.y for r in rows]
    elif config.bar_mode == "stacked":
        values = [total for r in rows for total in cumulative_sums(r.values)]
    else:
        values = [v for r in rows for v in r.values]
    value = build_value_scale(values, layout.value_extent, invert=vertical, tick_count=config.y_tick_count)

    prims: list[Primitive] = list(
        value_axis(
            value,
            extent=layout.band_extent,
            theme=theme,
            orientation="vertical" if vertical else "horizontal",
            tick_count=config.y_tick_count,
            show_ticks=config.show_ticks,
        )
    )

    if config.bar_mode == "simple":
        marks, legend = _simple(rows, band, value, layout, config, theme, state)
    elif config.bar_mode == "stacked":
        marks, legend = _stacked(rows, band, value, layout, config, theme, state)
    else:
        marks, legend = _grouped(rows, band, value, layout, config, theme, state)
    prims.extend(marks)

    if config.show_labels:
        for i, row in enumerate(rows):
            center = band.position(i) + band.bandwidth / 2.0
            text = truncate_label(row.label, config.truncate_by)
            if vertical:
                prims.append(Text(center, value(0.0), text, anchor="middle", fill=theme.axis_text, dy=15, role="label", datum=row))
            else:
                prims.append(Text(-5.0, center, text, anchor="end", fill=theme.axis_text, dy=4, role="label", datum=row))

    ref_axis = "y" if vertical else "x"
    prims.extend(
        reference_lines(
            [dataclasses.replace(m, axis=ref_axis) for m in config.ref_values],
            value,
            axis=ref_axis,
            width=frame.width,
            height=frame.height,
            theme=theme,
        )
    )

    tester = BandHitTester(band, rows, axis="x" if vertical else "y")
    return frame.result(prims, hit_tester=tester, scales={"band": band, "value": value}, legend=legend)


def _simple(
    rows: list[DataPoint],
    band: BandScale,
    value: LinearScale,
    layout: _Layout,
    config: ChartConfig,
    theme: Theme,
    state: HighlightState,
) -> tuple[list[Primitive], tuple[LegendEntry, ...]]:
    binding = series_colors((r.category for r in rows), config, theme)
    out: list[Primitive] = []
    zero = value(0.0)
    for i, row in enumerate(rows):
        if row.y is None:
            continue
        opacity = opacity_for(
            state,
            category=row.category,
            label=row.label,
            is_hovered=row is state.hovered,
            dim_opacity=config.dim_opacity,
        )
        end = value(row.y)
        out.append(layout.rect(band.position(i), band.bandwidth, zero, end, fill=binding.color_of(row.category), opacity=opacity, datum=row))
        if config.show_values:
            center = band.position(i) + band.bandwidth / 2.0
            negative = row.y < 0
            if layout.vertical:
                out.append(Text(center, end, value_text(row.y, config), anchor="middle", fill=theme.axis_text, dy=15 if negative else -5, opacity=opacity, role="value", datum=row))
            else:
                x, y = layout.point(center, end - 5.0 if negative else end + 5.0)
                out.append(Text(x, y, value_text(row.y, config), anchor="end" if negative else "start", fill=theme.axis_text, dy=4, opacity=opacity, role="value", datum=row))
    return out, legend_for(binding, state, config.dim_opacity)


def _component_legend(
    count: int, config: ChartConfig, theme: Theme, state: HighlightState
) -> tuple[tuple[str, ...], tuple[LegendEntry, ...]]:
    colors = positional_colors(count, config, theme)
    if not config.labels:
        return colors, ()
    return colors, legend_from_pairs(zip(config.labels[:count], colors, strict=True), state, config.dim_opacity)


def _stacked(
    rows: list[CompositePoint],
    band: BandScale,
    value: LinearScale,
    layout: _Layout,
    config: ChartConfig,
    theme: Theme,
    state: HighlightState,
) -> tuple[list[Primitive], tuple[LegendEntry, ...]]:
    count = max((len(r.values) for r in rows), default=0)
    colors, legend = _component_legend(count, config, theme, state)
    out: list[Primitive] = []
    for i, row in enumerate(rows):
        pos = band.position(i)
        center = pos + band.bandwidth / 2.0
        segments = stacked_segments(row.values, value)
        for seg in segments:
            if not seg.present:
                continue
            category = config.labels[seg.index] if config.labels else None
            opacity = opacity_for(
                state,
                category=category,
                label=row.label,
                is_hovered=row is state.hovered,
                dim_opacity=config.dim_opacity,
            )
            p0, p1 = value(seg.start), value(seg.end)
            out.append(layout.rect(pos, band.bandwidth, p0, p1, fill=colors[seg.index], opacity=opacity, datum=row))
            if config.show_values and value_label_visible(seg.height, config.value_label_min_px):
                x, y = layout.point(center, (p0 + p1) / 2.0)
                out.append(Text(x, y, value_text(seg.value, config), anchor="middle", fill=theme.value_text_inside, dy=5, opacity=opacity, role="value", datum=row))
        if config.show_values and segments and any(s.present for s in segments):
            total = segments[-1].end
            end = value(total)
            if layout.vertical:
                out.append(Text(center, end, value_text(total, config), anchor="middle", fill=theme.axis_text, dy=-10, role="value", datum=row))
            else:
                x, y = layout.point(center, end + 5.0)
                out.append(Text(x, y, value_text(total, config), anchor="start", fill=theme.axis_text, dy=4, role="value", datum=row))
    return out, legend


def _grouped(
    rows: list[CompositePoint],
    band: BandScale,
    value: LinearScale,
    layout: _Layout,
    config: ChartConfig,
    theme: Theme,
    state: HighlightState,
) -> tuple[list[Primitive], tuple[LegendEntry, ...]]:
    count = max((len(r.values) for r in rows), default=0)
    colors, legend = _component_legend(count, config, theme, state)
    sub = BandScale(keys=tuple(str(j) for j in range(count)), range=(0.0, band.bandwidth), padding_inner=GROUP_PADDING)
    zero = value(0.0)
    out: list[Primitive] = []
    for i, row in enumerate(rows):
        pos = band.position(i)
        for j, v in enumerate(row.values):
            if v is None:
                continue
            category = config.labels[j] if config.labels else None
            opacity = opacity_for(
                state,
                category=category,
                label=row.label,
                is_hovered=row is state.hovered,
                dim_opacity=config.dim_opacity,
            )
            end = value(v)
            out.append(layout.rect(pos + sub.position(j), sub.bandwidth, zero, end, fill=colors[j], opacity=opacity, datum=row))
            if config.show_values:
                center = pos + sub.position(j) + sub.bandwidth / 2.0
                if layout.vertical:
                    out.append(Text(center, end, value_text(v, config), anchor="middle", fill=colors[j], dy=15 if v < 0 else -5, opacity=opacity, role="value", datum=row))
                else:
                    x, y = layout.point(center, end - 5.0 if v < 0 else end + 5.0)
                    out.append(Text(x, y, value_text(v, config), anchor="end" if v < 0 else "start", fill=colors[j], dy=4, opacity=opacity, role="value", datum=row))
    return out, legend

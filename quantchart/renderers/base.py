from __future__ import annotations

from datetime import datetime
import logging
from typing import Any, Iterable, Sequence

from quantchart.colors import ColorBinding, bind_colors
from quantchart.config import ChartConfig
from quantchart.data import ReferenceMarker
from quantchart.geometry import REFERENCE_DASH, LegendEntry, Line, Primitive, RenderResult, Text
from quantchart.scales import LinearScale, TimeScale, build_time_scale, format_ticks_for_axis, format_value, to_seconds
from quantchart.selection import HighlightState
from quantchart.sizing import Size, plot_area
from quantchart.theme import Theme


LOGGER = logging.getLogger(__name__)

EMPTY_STATE = HighlightState()


class PlotFrame:
    """Plot rectangle of one render pass: origin inside the surface plus extent."""

    def __init__(self, size: Size, config: ChartConfig) -> None:
        self.size = size
        self.margins = config.margins
        self.width, self.height = plot_area(size, config.margins)

    @property
    def origin(self) -> tuple[float, float]:
        return (float(self.margins.left), float(self.margins.top))

    def result(self, primitives: Iterable[Primitive], **kwargs: Any) -> RenderResult:
        return RenderResult(
            width=self.size.width,
            height=self.size.height,
            origin=self.origin,
            primitives=tuple(primitives),
            **kwargs,
        )

    def empty(self) -> RenderResult:
        return RenderResult.placeholder(self.size.width, self.size.height, self.origin)


def x_key(value: float | datetime) -> float:
    """Sortable float for an x value (seconds for datetimes)."""

    if isinstance(value, datetime):
        return to_seconds(value)
    return float(value)


def ordered_x_scale(xs: Sequence[float | datetime], extent: float) -> LinearScale | TimeScale:
    """Chronological (or plain numeric) x axis; never zero-anchored."""

    if xs and all(isinstance(v, datetime) for v in xs):
        return build_time_scale(xs, extent)
    keys = [x_key(v) for v in xs]
    if not keys:
        return LinearScale(domain=(0.0, 0.0), range=(0.0, max(0.0, extent)))
    return LinearScale(domain=(min(keys), max(keys)), range=(0.0, max(0.0, extent)))


def x_axis_labels(
    scale: LinearScale | TimeScale,
    *,
    baseline_y: float,
    theme: Theme,
    config: ChartConfig,
) -> list[Primitive]:
    if not config.show_ticks:
        return []
    ticks = scale.ticks(config.x_tick_count)
    if isinstance(scale, TimeScale):
        labels = [t.strftime(config.date_format) for t in ticks]
    else:
        labels = format_ticks_for_axis(ticks)
    return [
        Text(scale(t), baseline_y, label, anchor="middle", fill=theme.axis_text, dy=15, role="tick")
        for t, label in zip(ticks, labels, strict=True)
    ]


def series_colors(keys: Iterable[str | None], config: ChartConfig, theme: Theme) -> ColorBinding:
    return bind_colors(
        keys,
        config.color_domain,
        config.colors,
        palette=theme.categorical,
        no_data_color=theme.no_data,
        default_color=theme.single_series,
    )


def positional_colors(count: int, config: ChartConfig, theme: Theme) -> tuple[str, ...]:
    """One color per component index (stacked, grouped, multi-line, dumbbell)."""

    palette = config.colors or theme.categorical
    return tuple(palette[i % len(palette)] for i in range(count))


def legend_for(binding: ColorBinding, state: HighlightState, dim_opacity: float) -> tuple[LegendEntry, ...]:
    return legend_from_pairs(binding.legend(), state, dim_opacity)


def legend_from_pairs(
    pairs: Iterable[tuple[str, str]],
    state: HighlightState,
    dim_opacity: float,
) -> tuple[LegendEntry, ...]:
    out = []
    for key, color in pairs:
        opacity = 1.0
        if state.selected_category is not None and key != state.selected_category:
            opacity = dim_opacity
        out.append(LegendEntry(key=key, color=color, opacity=opacity))
    return tuple(out)


def value_text(value: float | None, config: ChartConfig) -> str:
    return format_value(value, config.prefix, config.suffix)


def reference_lines(
    markers: Sequence[ReferenceMarker],
    scale: LinearScale,
    *,
    axis: str,
    width: float,
    height: float,
    theme: Theme,
    overhang: float = 0.0,
) -> list[Primitive]:
    """Dashed lines at fixed values; they never widen the scale domain.

    For `axis="y"` the line runs horizontally across the plot with its label
    right-aligned above it; for `axis="x"` it runs vertically with the label
    flipped to the left side in the last quarter of the plot.
    """

    out: list[Primitive] = []
    for marker in markers:
        if marker.axis != axis:
            continue
        p = scale(marker.value)
        if axis == "y":
            out.append(
                Line(-overhang, p, width + overhang, p, stroke=theme.reference_line, stroke_width=1.5, dash=REFERENCE_DASH, role="reference", datum=marker)
            )
            if marker.label:
                out.append(
                    Text(width + overhang, p, marker.label, anchor="end", bold=True, fill=theme.reference_line, dy=-5, role="reference", datum=marker)
                )
        else:
            out.append(
                Line(p, 0, p, height, stroke=theme.reference_line, stroke_width=1.5, dash=REFERENCE_DASH, role="reference", datum=marker)
            )
            if marker.label:
                flip = p > width * 0.75
                out.append(
                    Text(
                        p - 5 if flip else p + 5,
                        0,
                        marker.label,
                        anchor="end" if flip else "start",
                        bold=True,
                        fill=theme.reference_line,
                        dy=12.5,
                        role="reference",
                        datum=marker,
                    )
                )
    return out


def defined_runs(points: Sequence[tuple[float, float | None]]) -> list[list[tuple[float, float]]]:
    """Split a sampled series at absent values so gaps are not drawn as zero."""

    runs: list[list[tuple[float, float]]] = []
    current: list[tuple[float, float]] = []
    for x, y in points:
        if y is None:
            if current:
                runs.append(current)
            current = []
            continue
        current.append((x, y))
    if current:
        runs.append(current)
    return runs

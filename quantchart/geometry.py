from __future__ import annotations

from dataclasses import dataclass, field
import math
from typing import Any, Literal, Sequence, Union

from quantchart.scales import LinearScale, format_ticks_for_axis
from quantchart.theme import Theme


ELLIPSIS = "..."
GRID_DASH = (4.0, 8.0)
REFERENCE_DASH = (4.0, 4.0)
HOVER_DASH = (4.0, 8.0)

Role = Literal["mark", "grid", "baseline", "tick", "label", "value", "reference", "highlight", "guide", "hit"]


@dataclass(frozen=True, kw_only=True)
class Mark:
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float = 1.0
    opacity: float = 1.0
    fill_opacity: float = 1.0
    dash: tuple[float, ...] | None = None
    role: Role = "mark"
    datum: Any = None


@dataclass(frozen=True)
class Rect(Mark):
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class Line(Mark):
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class Circle(Mark):
    cx: float
    cy: float
    r: float


@dataclass(frozen=True)
class Polygon(Mark):
    points: tuple[tuple[float, float], ...]


@dataclass(frozen=True)
class Path(Mark):
    """Open or closed path of M/L/C/Z commands in plot coordinates."""

    commands: tuple[tuple[Any, ...], ...]


@dataclass(frozen=True)
class Text(Mark):
    x: float
    y: float
    text: str
    anchor: Literal["start", "middle", "end"] = "start"
    font_size: float = 12.0
    bold: bool = False
    dy: float = 0.0


@dataclass(frozen=True)
class HitRegion(Mark):
    """Invisible polygon that routes pointer hits to `datum`."""

    points: tuple[tuple[float, float], ...]
    role: Role = field(default="hit", kw_only=True)
    opacity: float = field(default=0.0, kw_only=True)


Primitive = Union[Rect, Line, Circle, Polygon, Path, Text, HitRegion]


@dataclass(frozen=True)
class LegendEntry:
    key: str
    color: str
    opacity: float = 1.0


@dataclass(frozen=True)
class RenderResult:
    """Everything one render pass produces.

    Primitive coordinates are relative to `origin` (the plot's top-left corner
    inside the drawing surface); hit testers take the same coordinates.
    """

    width: int
    height: int
    origin: tuple[float, float] = (0.0, 0.0)
    primitives: tuple[Primitive, ...] = ()
    hit_tester: Any = None
    scales: dict[str, Any] = field(default_factory=dict)
    legend: tuple[LegendEntry, ...] = ()
    empty: bool = False

    @classmethod
    def placeholder(cls, width: int = 0, height: int = 0, origin: tuple[float, float] = (0.0, 0.0)) -> "RenderResult":
        return cls(width=width, height=height, origin=origin, empty=True)

    def by_role(self, role: str) -> list[Primitive]:
        return [p for p in self.primitives if p.role == role]


@dataclass(frozen=True)
class Segment:
    index: int
    value: float | None
    start: float
    end: float
    top: float
    height: float

    @property
    def present(self) -> bool:
        return self.value is not None


def cumulative_sums(values: Sequence[float | None]) -> list[float]:
    """Running totals of the defined components; absent ones repeat the previous total."""

    out: list[float] = []
    running = 0.0
    for value in values:
        if value is not None and math.isfinite(value):
            running += value
        out.append(running)
    return out


def stacked_segments(values: Sequence[float | None], scale: LinearScale) -> list[Segment]:
    """Cumulative stack of component values.

    The pixel top of segment j is the scale of the cumulative sum of defined
    components at indices <= j; absent components add nothing and produce a
    zero-height segment at the running baseline.
    """

    out: list[Segment] = []
    running = 0.0
    for j, value in enumerate(values):
        start = running
        if value is not None and math.isfinite(value):
            running += value
        else:
            value = None
        p_start = scale(start)
        p_end = scale(running)
        out.append(
            Segment(
                index=j,
                value=value,
                start=start,
                end=running,
                top=min(p_start, p_end),
                height=abs(p_end - p_start),
            )
        )
    return out


def value_label_visible(extent_px: float, threshold: float = 20.0) -> bool:
    return math.isfinite(extent_px) and abs(extent_px) > threshold


def truncate_label(text: Any, budget: int) -> str:
    label = "" if text is None else str(text)
    if budget <= 0 or len(label) <= budget:
        return label
    return label[:budget] + ELLIPSIS


def value_axis(
    scale: LinearScale,
    *,
    extent: float,
    theme: Theme,
    orientation: Literal["vertical", "horizontal"] = "vertical",
    tick_count: int = 5,
    show_ticks: bool = True,
    overhang: float = 0.0,
) -> list[Primitive]:
    """Dashed grid lines, tick labels and an explicit zero baseline.

    `orientation="vertical"` means values run along y (horizontal grid lines).
    The baseline at 0 is always drawn, whether or not 0 is a tick.
    """

    out: list[Primitive] = []
    if show_ticks:
        ticks = [t for t in scale.ticks(tick_count) if t != 0]
        for tick, label in zip(ticks, format_ticks_for_axis(ticks), strict=False):
            p = scale(tick)
            if orientation == "vertical":
                out.append(Line(-overhang, p, extent, p, stroke=theme.grid, dash=GRID_DASH, role="grid"))
                out.append(Text(-overhang - 3, p, label, anchor="end", fill=theme.axis_text, dy=4, role="tick"))
            else:
                out.append(Line(p, 0, p, extent, stroke=theme.grid, dash=GRID_DASH, role="grid"))
                out.append(Text(p, extent, label, anchor="middle", fill=theme.axis_text, dy=15, role="tick"))
    out.extend(zero_baseline(scale, extent=extent, theme=theme, orientation=orientation, overhang=overhang))
    return out


def zero_baseline(
    scale: LinearScale,
    *,
    extent: float,
    theme: Theme,
    orientation: Literal["vertical", "horizontal"] = "vertical",
    overhang: float = 0.0,
) -> list[Primitive]:
    p = scale(0.0)
    if orientation == "vertical":
        return [
            Line(-overhang, p, extent, p, stroke=theme.baseline, role="baseline"),
            Text(-overhang - 3, p, "0", anchor="end", fill=theme.baseline, dy=4, role="tick"),
        ]
    return [
        Line(p, 0, p, extent, stroke=theme.baseline, role="baseline"),
        Text(p, extent, "0", anchor="middle", fill=theme.baseline, dy=15, role="tick"),
    ]


def monotone_x_path(points: Sequence[tuple[float, float]]) -> tuple[tuple[Any, ...], ...]:
    """Path commands for a monotone-in-x cubic curve through `points`.

    Tangents follow Steffen's method so the curve never overshoots between
    samples; two points yield a straight segment.
    """

    n = len(points)
    if n == 0:
        return ()
    xs = [float(p[0]) for p in points]
    ys = [float(p[1]) for p in points]
    commands: list[tuple[Any, ...]] = [("M", xs[0], ys[0])]
    if n == 1:
        return tuple(commands)
    if n == 2:
        commands.append(("L", xs[1], ys[1]))
        return tuple(commands)

    tangents = [0.0] * n
    for i in range(1, n - 1):
        tangents[i] = _interior_slope(xs[i - 1], ys[i - 1], xs[i], ys[i], xs[i + 1], ys[i + 1])
    tangents[0] = _end_slope(xs[0], ys[0], xs[1], ys[1], tangents[1])
    tangents[-1] = _end_slope(xs[-2], ys[-2], xs[-1], ys[-1], tangents[-2])

    for i in range(n - 1):
        dx = (xs[i + 1] - xs[i]) / 3.0
        commands.append(
            (
                "C",
                xs[i] + dx,
                ys[i] + dx * tangents[i],
                xs[i + 1] - dx,
                ys[i + 1] - dx * tangents[i + 1],
                xs[i + 1],
                ys[i + 1],
            )
        )
    return tuple(commands)


def polyline_commands(points: Sequence[tuple[float, float]], *, closed: bool = False) -> tuple[tuple[Any, ...], ...]:
    if not points:
        return ()
    commands: list[tuple[Any, ...]] = [("M", float(points[0][0]), float(points[0][1]))]
    commands.extend(("L", float(x), float(y)) for x, y in points[1:])
    if closed:
        commands.append(("Z",))
    return tuple(commands)


def flatten_commands(commands: Sequence[tuple[Any, ...]], steps: int = 8) -> list[list[tuple[float, float]]]:
    """Sample path commands into polylines (one per subpath)."""

    runs: list[list[tuple[float, float]]] = []
    current: list[tuple[float, float]] = []
    for cmd in commands:
        op = cmd[0]
        if op == "M":
            if len(current) > 1:
                runs.append(current)
            current = [(cmd[1], cmd[2])]
        elif op == "L":
            current.append((cmd[1], cmd[2]))
        elif op == "C":
            x0, y0 = current[-1]
            x1, y1, x2, y2, x3, y3 = cmd[1:]
            for k in range(1, steps + 1):
                t = k / steps
                u = 1.0 - t
                current.append(
                    (
                        u**3 * x0 + 3 * u * u * t * x1 + 3 * u * t * t * x2 + t**3 * x3,
                        u**3 * y0 + 3 * u * u * t * y1 + 3 * u * t * t * y2 + t**3 * y3,
                    )
                )
        elif op == "Z" and current:
            current.append(current[0])
    if len(current) > 1:
        runs.append(current)
    return runs


def _interior_slope(x0: float, y0: float, x1: float, y1: float, x2: float, y2: float) -> float:
    h0 = x1 - x0
    h1 = x2 - x1
    if h0 == 0 or h1 == 0:
        return 0.0
    s0 = (y1 - y0) / h0
    s1 = (y2 - y1) / h1
    p = (s0 * h1 + s1 * h0) / (h0 + h1)
    out = (math.copysign(1.0, s0) + math.copysign(1.0, s1)) * min(abs(s0), abs(s1), 0.5 * abs(p))
    if s0 == 0 or s1 == 0:
        return 0.0
    return out if math.isfinite(out) else 0.0


def _end_slope(x0: float, y0: float, x1: float, y1: float, neighbor: float) -> float:
    h = x1 - x0
    if h == 0:
        return neighbor
    return (3.0 * (y1 - y0) / h - neighbor) / 2.0

from __future__ import annotations

import math
from typing import Sequence

from quantchart.config import ChartConfig
from quantchart.data import DataPoint
from quantchart.geometry import Circle, Primitive, RenderResult, Text, truncate_label, value_label_visible
from quantchart.hit_testing import CircleHitTester
from quantchart.renderers.base import EMPTY_STATE, PlotFrame, legend_for, series_colors, value_text
from quantchart.selection import HighlightState, opacity_for
from quantchart.sizing import Size
from quantchart.theme import Theme


PACK_PADDING = 2.0


class _Packed:
    __slots__ = ("x", "y", "r")

    def __init__(self, r: float) -> None:
        self.x = 0.0
        self.y = 0.0
        self.r = r


class _Node:
    __slots__ = ("circle", "next", "previous")

    def __init__(self, circle: _Packed) -> None:
        self.circle = circle
        self.next: _Node = self
        self.previous: _Node = self


def pack_siblings(radii: Sequence[float]) -> list[tuple[float, float]]:
    """Place tangent, non-overlapping circles around the origin.

    Front-chain packing: every new circle is placed tangent to the pair of
    chain circles closest to the centroid; on overlap the chain is cut back to
    the intersecting circle and the placement retried.
    """

    circles = [_Packed(float(r)) for r in radii]
    n = len(circles)
    if n == 0:
        return []
    a = circles[0]
    if n == 1:
        return [(0.0, 0.0)]
    b = circles[1]
    a.x = -b.r
    b.x = a.r
    if n == 2:
        return [(c.x, c.y) for c in circles]
    _place(b, a, circles[2])

    na, nb, nc = _Node(a), _Node(b), _Node(circles[2])
    na.next = nc.previous = nb
    nb.next = na.previous = nc
    nc.next = nb.previous = na
    a_node, b_node = na, nb

    i = 3
    while i < n:
        _place(a_node.circle, b_node.circle, circles[i])
        c_node = _Node(circles[i])
        j, k = b_node.next, a_node.previous
        sj, sk = b_node.circle.r, a_node.circle.r
        retry = False
        while True:
            if sj <= sk:
                if _intersects(j.circle, c_node.circle):
                    b_node = j
                    a_node.next, b_node.previous = b_node, a_node
                    retry = True
                    break
                sj += j.circle.r
                j = j.next
            else:
                if _intersects(k.circle, c_node.circle):
                    a_node = k
                    a_node.next, b_node.previous = b_node, a_node
                    retry = True
                    break
                sk += k.circle.r
                k = k.previous
            if j is k.next:
                break
        if retry:
            continue

        c_node.previous, c_node.next = a_node, b_node
        a_node.next = b_node.previous = c_node
        b_node = c_node
        best, best_score = a_node, _score(a_node)
        node = c_node.next
        while node is not b_node:
            s = _score(node)
            if s < best_score:
                best, best_score = node, s
            node = node.next
        a_node = best
        b_node = a_node.next
        i += 1
    return [(c.x, c.y) for c in circles]


def _place(b: _Packed, a: _Packed, c: _Packed) -> None:
    dx, dy = b.x - a.x, b.y - a.y
    d2 = dx * dx + dy * dy
    if d2 == 0:
        c.x, c.y = a.x + c.r, a.y
        return
    a2 = (a.r + c.r) ** 2
    b2 = (b.r + c.r) ** 2
    if a2 > b2:
        x = (d2 + b2 - a2) / (2 * d2)
        y = math.sqrt(max(0.0, b2 / d2 - x * x))
        c.x = b.x - x * dx - y * dy
        c.y = b.y - x * dy + y * dx
    else:
        x = (d2 + a2 - b2) / (2 * d2)
        y = math.sqrt(max(0.0, a2 / d2 - x * x))
        c.x = a.x + x * dx - y * dy
        c.y = a.y + x * dy + y * dx


def _intersects(a: _Packed, b: _Packed) -> bool:
    dr = a.r + b.r - 1e-6
    dx, dy = b.x - a.x, b.y - a.y
    return dr > 0 and dr * dr > dx * dx + dy * dy


def _score(node: _Node) -> float:
    a, b = node.circle, node.next.circle
    ab = a.r + b.r
    dx = (a.x * b.r + b.x * a.r) / ab
    dy = (a.y * b.r + b.y * a.r) / ab
    return dx * dx + dy * dy


def render_circle_packing(
    data: Sequence[DataPoint],
    size: Size,
    config: ChartConfig,
    theme: Theme,
    state: HighlightState = EMPTY_STATE,
) -> RenderResult:
    frame = PlotFrame(size, config)
    items = sorted((p for p in data if p.y is not None and p.y > 0), key=lambda p: p.y, reverse=True)
    if not size.measured or not items or frame.width <= 0 or frame.height <= 0:
        return frame.empty()

    # Area encodes value.
    radii = [math.sqrt(p.y) for p in items]
    centers = pack_siblings(radii)

    # Enclosing circle around the bounding box center of the packed layout.
    xs0 = min(cx - r for (cx, _), r in zip(centers, radii, strict=True))
    xs1 = max(cx + r for (cx, _), r in zip(centers, radii, strict=True))
    ys0 = min(cy - r for (_, cy), r in zip(centers, radii, strict=True))
    ys1 = max(cy + r for (_, cy), r in zip(centers, radii, strict=True))
    ox, oy = (xs0 + xs1) / 2.0, (ys0 + ys1) / 2.0
    enclosing = max(math.hypot(cx - ox, cy - oy) + r for (cx, cy), r in zip(centers, radii, strict=True))
    k = min(frame.width, frame.height) / 2.0 / enclosing
    mid_x, mid_y = frame.width / 2.0, frame.height / 2.0

    binding = series_colors((p.category for p in items), config, theme)
    prims: list[Primitive] = []
    hit_cx: list[float] = []
    hit_cy: list[float] = []
    hit_r: list[float] = []
    for p, (cx, cy), r in zip(items, centers, radii, strict=True):
        px = mid_x + (cx - ox) * k
        py = mid_y + (cy - oy) * k
        # Packed circles touch; shrink each to leave a gap.
        pr = max(0.0, r * k - PACK_PADDING / 2.0)
        hit_cx.append(px)
        hit_cy.append(py)
        hit_r.append(pr)
        opacity = opacity_for(
            state,
            category=p.category,
            label=p.label,
            is_hovered=p is state.hovered,
            dim_opacity=config.dim_opacity,
        )
        prims.append(Circle(px, py, pr, fill=binding.color_of(p.category), opacity=opacity, datum=p))
        if not value_label_visible(pr, config.value_label_min_px):
            continue
        # Roughly 7px per character at 12px text.
        budget = min(config.truncate_by, max(1, int(2 * pr / 7.0)))
        if config.show_labels and p.label:
            prims.append(
                Text(px, py, truncate_label(p.label, budget), anchor="middle", fill=theme.value_text_inside, dy=-2 if config.show_values else 4, opacity=opacity, role="label", datum=p)
            )
        if config.show_values:
            prims.append(
                Text(px, py, value_text(p.y, config), anchor="middle", bold=True, fill=theme.value_text_inside, dy=12 if config.show_labels and p.label else 4, opacity=opacity, role="value", datum=p)
            )

    tester = CircleHitTester(items, hit_cx, hit_cy, hit_r)
    return frame.result(prims, hit_tester=tester, scales={"k": k}, legend=legend_for(binding, state, config.dim_opacity))

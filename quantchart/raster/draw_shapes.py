from __future__ import annotations

import math
from typing import Sequence

import numpy as np
from PIL import Image, ImageDraw

from quantchart.raster.canvas import RGBA, blend_mask


Point = tuple[float, float]


def fill_rect(dst: np.ndarray, x: float, y: float, width: float, height: float, color: RGBA) -> None:
    if width <= 0 or height <= 0:
        return
    fill_polygon(dst, [[(x, y), (x + width, y), (x + width, y + height), (x, y + height)]], color)


def fill_polygon(dst: np.ndarray, rings: Sequence[Sequence[Point]], color: RGBA) -> None:
    """Fill one or more rings with the even-odd rule."""

    h, w = dst.shape[:2]
    coverage = np.zeros((h, w), dtype=np.uint8)
    for ring in rings:
        if len(ring) < 3:
            continue
        image = Image.new("L", (w, h), 0)
        ImageDraw.Draw(image).polygon([(float(px), float(py)) for px, py in ring], fill=255)
        coverage ^= np.asarray(image, dtype=np.uint8)
    blend_mask(dst, 0, 0, coverage, color)


def fill_circle(dst: np.ndarray, cx: float, cy: float, r: float, color: RGBA) -> None:
    if r <= 0:
        return
    h, w = dst.shape[:2]
    image = Image.new("L", (w, h), 0)
    ImageDraw.Draw(image).ellipse((cx - r, cy - r, cx + r, cy + r), fill=255)
    blend_mask(dst, 0, 0, np.asarray(image, dtype=np.uint8), color)


def stroke_circle(dst: np.ndarray, cx: float, cy: float, r: float, color: RGBA, width: float = 1.0) -> None:
    if r <= 0 or width <= 0:
        return
    h, w = dst.shape[:2]
    image = Image.new("L", (w, h), 0)
    ImageDraw.Draw(image).ellipse((cx - r, cy - r, cx + r, cy + r), outline=255, width=max(1, int(round(width))))
    blend_mask(dst, 0, 0, np.asarray(image, dtype=np.uint8), color)


def stroke_polyline(
    dst: np.ndarray,
    points: Sequence[Point],
    color: RGBA,
    *,
    width: float = 1.0,
    dash: Sequence[float] | None = None,
    closed: bool = False,
) -> None:
    if len(points) < 2 or width <= 0:
        return
    pts = [(float(x), float(y)) for x, y in points]
    if closed and pts[0] != pts[-1]:
        pts.append(pts[0])
    runs = _dash_runs(pts, dash) if dash else [pts]
    h, w = dst.shape[:2]
    image = Image.new("L", (w, h), 0)
    draw = ImageDraw.Draw(image)
    line_width = max(1, int(round(width)))
    for run in runs:
        if len(run) >= 2:
            draw.line(run, fill=255, width=line_width, joint="curve")
    blend_mask(dst, 0, 0, np.asarray(image, dtype=np.uint8), color)


def _dash_runs(points: Sequence[Point], pattern: Sequence[float]) -> list[list[Point]]:
    """Split a polyline into the "on" pieces of a repeating dash pattern."""

    lengths = [max(0.0, float(v)) for v in pattern]
    if not lengths or sum(lengths) <= 0:
        return [list(points)]
    runs: list[list[Point]] = []
    index = 0
    remaining = lengths[0]
    on = True
    current: list[Point] = [points[0]]
    for (x0, y0), (x1, y1) in zip(points[:-1], points[1:], strict=True):
        seg = math.hypot(x1 - x0, y1 - y0)
        pos = 0.0
        while seg - pos > remaining:
            pos += remaining
            t = pos / seg
            cut = (x0 + (x1 - x0) * t, y0 + (y1 - y0) * t)
            if on:
                current.append(cut)
                runs.append(current)
            current = [cut]
            on = not on
            index = (index + 1) % len(lengths)
            remaining = lengths[index]
        remaining -= seg - pos
        current.append((x1, y1))
    if on and len(current) >= 2:
        runs.append(current)
    return runs

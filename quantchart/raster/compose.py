from __future__ import annotations

import logging

import numpy as np

from quantchart.geometry import Circle, HitRegion, Line, Path, Polygon, Primitive, Rect, RenderResult, Text, flatten_commands
from quantchart.raster.canvas import RGBA, new_canvas
from quantchart.raster.draw_shapes import fill_circle, fill_polygon, fill_rect, stroke_circle, stroke_polyline
from quantchart.raster.draw_text import draw_text
from quantchart.theme import Theme, hex_to_rgba


LOGGER = logging.getLogger(__name__)


def rasterize(result: RenderResult, theme: Theme) -> np.ndarray:
    """Draw a render result into an (height, width, 4) uint8 RGBA array."""

    canvas = new_canvas(result.width, result.height, hex_to_rgba(theme.background))
    if result.empty or canvas.size == 0:
        return canvas
    ox, oy = result.origin
    for prim in result.primitives:
        if isinstance(prim, HitRegion):
            continue
        _draw(canvas, prim, ox, oy, theme)
    LOGGER.debug("rasterized %d primitives into %dx%d", len(result.primitives), result.width, result.height)
    return canvas


def _paint(color: str | None, opacity: float) -> RGBA | None:
    if color is None or opacity <= 0:
        return None
    return hex_to_rgba(color, opacity)


def _draw(canvas: np.ndarray, prim: Primitive, ox: float, oy: float, theme: Theme) -> None:
    fill = _paint(prim.fill, prim.opacity * prim.fill_opacity)
    stroke = _paint(prim.stroke, prim.opacity)
    if isinstance(prim, Rect):
        if fill is not None:
            fill_rect(canvas, ox + prim.x, oy + prim.y, prim.width, prim.height, fill)
        if stroke is not None:
            x0, y0 = ox + prim.x, oy + prim.y
            x1, y1 = x0 + prim.width, y0 + prim.height
            stroke_polyline(canvas, [(x0, y0), (x1, y0), (x1, y1), (x0, y1)], stroke, width=prim.stroke_width, dash=prim.dash, closed=True)
    elif isinstance(prim, Line):
        if stroke is not None:
            stroke_polyline(
                canvas,
                [(ox + prim.x1, oy + prim.y1), (ox + prim.x2, oy + prim.y2)],
                stroke,
                width=prim.stroke_width,
                dash=prim.dash,
            )
    elif isinstance(prim, Circle):
        if fill is not None:
            fill_circle(canvas, ox + prim.cx, oy + prim.cy, prim.r, fill)
        if stroke is not None:
            stroke_circle(canvas, ox + prim.cx, oy + prim.cy, prim.r, stroke, prim.stroke_width)
    elif isinstance(prim, Polygon):
        pts = [(ox + x, oy + y) for x, y in prim.points]
        if fill is not None:
            fill_polygon(canvas, [pts], fill)
        if stroke is not None:
            stroke_polyline(canvas, pts, stroke, width=prim.stroke_width, dash=prim.dash, closed=True)
    elif isinstance(prim, Path):
        runs = [[(ox + x, oy + y) for x, y in run] for run in flatten_commands(prim.commands)]
        if fill is not None:
            fill_polygon(canvas, runs, fill)
        if stroke is not None:
            for run in runs:
                stroke_polyline(canvas, run, stroke, width=prim.stroke_width, dash=prim.dash)
    elif isinstance(prim, Text):
        color = _paint(prim.fill or theme.axis_text, prim.opacity)
        if color is not None:
            draw_text(
                canvas,
                ox + prim.x,
                oy + prim.y + prim.dy,
                prim.text,
                color,
                anchor=prim.anchor,
                font_family=theme.font_family,
                font_size_px=prim.font_size,
                bold=prim.bold,
            )

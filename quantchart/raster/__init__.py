from .canvas import blend_mask, new_canvas
from .compose import rasterize
from .draw_shapes import fill_circle, fill_polygon, fill_rect, stroke_circle, stroke_polyline
from .draw_text import draw_text

__all__ = [
    "blend_mask",
    "draw_text",
    "fill_circle",
    "fill_polygon",
    "fill_rect",
    "new_canvas",
    "rasterize",
    "stroke_circle",
    "stroke_polyline",
]

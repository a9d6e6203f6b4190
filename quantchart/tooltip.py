from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Literal


VAlign = Literal["top", "bottom"]
HAlign = Literal["left", "right"]

DEFAULT_OFFSET_X = 20.0
DEFAULT_OFFSET_Y = 40.0


@dataclass(frozen=True)
class TooltipAnchor:
    """Where the tooltip box is pinned.

    `v_align == "top"` puts the box above the anchor (its bottom edge at `y`),
    `h_align == "left"` puts it left of the anchor (its right edge at `x`).
    """

    x: float
    y: float
    v_align: VAlign
    h_align: HAlign


def position_tooltip(
    pointer_x: float,
    pointer_y: float,
    viewport_w: float,
    viewport_h: float,
    *,
    offset_x: float = DEFAULT_OFFSET_X,
    offset_y: float = DEFAULT_OFFSET_Y,
) -> TooltipAnchor:
    """Anchor a tooltip so it opens away from the nearest viewport edges."""

    v_align: VAlign = "top" if pointer_y > viewport_h / 2.0 else "bottom"
    h_align: HAlign = "left" if pointer_x > viewport_w / 2.0 else "right"
    y = pointer_y - offset_y if v_align == "top" else pointer_y + offset_y
    x = pointer_x - offset_x if h_align == "left" else pointer_x + offset_x
    return TooltipAnchor(x=x, y=y, v_align=v_align, h_align=h_align)


def tooltip_for(
    hovered: Any,
    pointer: tuple[float, float] | None,
    viewport: tuple[float, float],
    content: Callable[[Any], Any] | None,
    *,
    offset_x: float = DEFAULT_OFFSET_X,
    offset_y: float = DEFAULT_OFFSET_Y,
) -> tuple[TooltipAnchor, Any] | None:
    """Tooltip anchor and rendered content, or None when nothing is hovered."""

    if hovered is None or pointer is None or content is None:
        return None
    anchor = position_tooltip(
        pointer[0],
        pointer[1],
        viewport[0],
        viewport[1],
        offset_x=offset_x,
        offset_y=offset_y,
    )
    return anchor, content(hovered)

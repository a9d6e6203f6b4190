from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Literal

from quantchart.hit_testing import HitTester


PointerKind = Literal["move", "leave", "legend_click", "legend_clear"]

DEFAULT_DIM_OPACITY = 0.3


@dataclass(frozen=True)
class PointerEvent:
    """Host-framework independent pointer/legend event.

    `x`/`y` are relative to the chart's drawing surface; `client_x`/`client_y`
    are viewport coordinates used for tooltip placement (default to x/y) and
    `viewport` is the size of the host viewport they are measured in.
    """

    kind: PointerKind
    x: float = 0.0
    y: float = 0.0
    client_x: float | None = None
    client_y: float | None = None
    category: str | None = None
    viewport: tuple[float, float] | None = None


@dataclass(frozen=True)
class HighlightState:
    selected_category: str | None = None
    hovered: Any = None
    pointer: tuple[float, float] | None = None
    local_pointer: tuple[float, float] | None = None
    viewport: tuple[float, float] | None = None

    @property
    def hovered_label(self) -> str | None:
        return getattr(self.hovered, "label", None)


def reduce_highlight(
    state: HighlightState,
    event: PointerEvent,
    hit_tester: HitTester | None = None,
    plot_rect: tuple[float, float, float, float] | None = None,
) -> HighlightState:
    """Pure event -> state transition; last pointer position wins."""

    if event.kind == "legend_click":
        if event.category is None or event.category == state.selected_category:
            return dataclasses.replace(state, selected_category=None)
        return dataclasses.replace(state, selected_category=event.category)
    if event.kind == "legend_clear":
        return dataclasses.replace(state, selected_category=None)
    if event.kind == "leave":
        return _without_hover(state)
    if event.kind != "move":
        raise ValueError(f"unknown pointer event kind: {event.kind!r}")

    if hit_tester is None:
        return _without_hover(state)
    left, top, width, height = plot_rect if plot_rect is not None else (0.0, 0.0, float("inf"), float("inf"))
    px = event.x - left
    py = event.y - top
    if not (0.0 <= px <= width and 0.0 <= py <= height):
        return _without_hover(state)
    hovered = hit_tester.hit(px, py)
    if hovered is None:
        return _without_hover(state)
    client = (
        event.x if event.client_x is None else event.client_x,
        event.y if event.client_y is None else event.client_y,
    )
    return dataclasses.replace(
        state,
        hovered=hovered,
        pointer=client,
        local_pointer=(event.x, event.y),
        viewport=event.viewport,
    )


def _without_hover(state: HighlightState) -> HighlightState:
    return dataclasses.replace(state, hovered=None, pointer=None, local_pointer=None, viewport=None)


def opacity_for(
    state: HighlightState,
    *,
    category: str | None = None,
    label: str | None = None,
    is_hovered: bool = False,
    highlighted_labels: tuple[str, ...] = (),
    dim_opacity: float = DEFAULT_DIM_OPACITY,
) -> float:
    """Per-mark opacity. Hover dimming takes precedence over legend selection."""

    if state.hovered is not None:
        if is_hovered or (label is not None and label == state.hovered_label):
            return 1.0
        return dim_opacity
    if state.selected_category is not None:
        return 1.0 if category == state.selected_category else dim_opacity
    if highlighted_labels:
        return 1.0 if label in highlighted_labels else dim_opacity
    return 1.0

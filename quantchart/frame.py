from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

import numpy as np

from quantchart.config import ChartConfig, resolve_config
from quantchart.data import coerce_composites, coerce_geo, coerce_points
from quantchart.geometry import RenderResult
from quantchart.hit_testing import TessellationCache
from quantchart.raster import rasterize
from quantchart.renderers import RENDERERS, TESSELLATED, data_shape
from quantchart.selection import HighlightState, PointerEvent, reduce_highlight
from quantchart.sizing import ResponsiveSizer, Size, SizeProbe
from quantchart.svg import to_svg
from quantchart.theme import Theme, resolve_theme
from quantchart.tooltip import TooltipAnchor, tooltip_for


LOGGER = logging.getLogger(__name__)

# Variants whose x values are calendar dates parsed with `date_format`.
TIME_SERIES = frozenset({"line", "multi_line", "area"})


class ChartFrame:
    """One chart: sizing, data coercion, highlight state and the variant renderer.

    The frame keeps the last `RenderResult` so pointer events are resolved
    against exactly what was drawn.
    """

    def __init__(
        self,
        variant: str,
        data: Any,
        options: Mapping[str, Any] | None = None,
        *,
        theme: Theme | Mapping[str, Any] | None = None,
        probe: SizeProbe | None = None,
        geodata: Any = None,
        projection: Callable[[float, float], tuple[float, float]] | None = None,
        id_property: str | None = None,
        tooltip: Callable[[Any], Any] | None = None,
        on_series_hover: Callable[[Any], None] | None = None,
    ) -> None:
        self.variant = variant
        self.config: ChartConfig = resolve_config(variant, options)
        self.theme = theme if isinstance(theme, Theme) else resolve_theme(theme)
        self.sizer = ResponsiveSizer(
            probe,
            width=self.config.width,
            height=self.config.height,
            relative_height=self.config.relative_height,
            fallback=self.config.fallback_size,
        )
        self.geodata = geodata
        self.projection = projection
        self.id_property = id_property
        self.tooltip_content = tooltip
        self.on_series_hover = on_series_hover
        self.state = HighlightState()
        self.cache = TessellationCache()
        self._source: Any = None
        self._data: tuple[Any, ...] = ()
        self._last: RenderResult | None = None
        self.set_data(data)

    @property
    def data(self) -> tuple[Any, ...]:
        return self._data

    @property
    def size(self) -> Size:
        return self.sizer.measure()

    def set_data(self, data: Any) -> None:
        """Coerce and store a new data set; clears any hover on the old one."""

        shape = data_shape(self.variant, self.config)
        date_format = self.config.date_format if self.variant in TIME_SERIES else None
        if shape == "geo":
            coerced: tuple[Any, ...] = coerce_geo(data)
        elif shape == "composites":
            coerced = coerce_composites(data, date_format=date_format)
        else:
            coerced = coerce_points(data, date_format=date_format)
        self._source = data
        self._data = coerced
        self.cache.invalidate()
        self._last = None
        if self.state.hovered is not None:
            self.state = reduce_highlight(self.state, PointerEvent(kind="leave"))
        LOGGER.debug("%s chart holds %d records", self.variant, len(coerced))

    def render(self) -> RenderResult:
        renderer = RENDERERS[self.variant]
        kwargs: dict[str, Any] = {}
        if self.variant in TESSELLATED:
            kwargs["cache"] = self.cache
            kwargs["source"] = self._data
        if self.variant == "map":
            kwargs.update(geodata=self.geodata, projection=self.projection, id_property=self.id_property)
        result = renderer(self._data, self.size, self.config, self.theme, self.state, **kwargs)
        self._last = result
        return result

    def pointer(self, event: PointerEvent) -> HighlightState:
        """Apply a pointer or legend event and notify `on_series_hover` on hover changes."""

        result = self._last if self._last is not None else self.render()
        plot_w = max(0.0, result.width - self.config.margins.left - self.config.margins.right)
        plot_h = max(0.0, result.height - self.config.margins.top - self.config.margins.bottom)
        plot_rect = (result.origin[0], result.origin[1], plot_w, plot_h)
        before = self.state
        self.state = reduce_highlight(before, event, result.hit_tester, plot_rect)
        if self.state.hovered is not before.hovered and self.on_series_hover is not None:
            self.on_series_hover(self.state.hovered)
        if self.state != before:
            self._last = None
        return self.state

    def tooltip(self, viewport: tuple[float, float] | None = None) -> tuple[TooltipAnchor, Any] | None:
        """Tooltip for the hovered datum, anchored in the host viewport.

        Without a known viewport (argument or pointer event) the tooltip is
        placed in chart coordinates against the chart's own size.
        """

        viewport = viewport if viewport is not None else self.state.viewport
        pointer = self.state.pointer
        if viewport is None:
            size = self.size
            viewport = (float(size.width), float(size.height))
            pointer = self.state.local_pointer
        return tooltip_for(
            self.state.hovered,
            pointer,
            viewport,
            self.tooltip_content,
            offset_x=self.config.tooltip_offset_x,
            offset_y=self.config.tooltip_offset_y,
        )

    def legend_click(self, category: str | None) -> HighlightState:
        return self.pointer(PointerEvent(kind="legend_click", category=category))

    def legend_clear(self) -> HighlightState:
        return self.pointer(PointerEvent(kind="legend_clear"))

    def resize(self, width: float, height: float) -> bool:
        changed = self.sizer.observe(width, height)
        if changed:
            self.cache.invalidate()
            self._last = None
        return changed

    def to_svg(self, *, include_hit_regions: bool = True) -> str:
        return to_svg(self.render(), self.theme, include_hit_regions=include_hit_regions)

    def to_rgba(self) -> np.ndarray:
        return rasterize(self.render(), self.theme)

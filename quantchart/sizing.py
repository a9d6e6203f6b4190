from __future__ import annotations

from dataclasses import dataclass
import logging
import math
from typing import Callable

from quantchart.config import CARTESIAN_FALLBACK_SIZE, Margins
from quantchart.errors import ChartConfigError


LOGGER = logging.getLogger(__name__)

SizeProbe = Callable[[], "tuple[float, float] | None"]


@dataclass(frozen=True)
class Size:
    width: int
    height: int

    @property
    def measured(self) -> bool:
        return self.width > 0 and self.height > 0


UNMEASURED = Size(0, 0)


class ResponsiveSizer:
    """Tracks the pixel size of the drawing container.

    Explicit width/height short-circuit measurement. Until the container reports
    a box (through `probe` or `observe`) the size is (0, 0) and nothing is drawn.
    """

    def __init__(
        self,
        probe: SizeProbe | None = None,
        *,
        width: float | None = None,
        height: float | None = None,
        relative_height: float | None = None,
        fallback: tuple[int, int] = CARTESIAN_FALLBACK_SIZE,
    ) -> None:
        if width is not None and width <= 0:
            raise ChartConfigError("width must be > 0")
        if height is not None and height <= 0:
            raise ChartConfigError("height must be > 0")
        if relative_height is not None and relative_height <= 0:
            raise ChartConfigError("relative_height must be > 0")
        if fallback[0] <= 0 or fallback[1] <= 0:
            raise ChartConfigError("fallback width/height must be > 0")
        self._probe = probe
        self._width = width
        self._height = height
        self._relative_height = relative_height
        self._fallback = fallback
        self._observed: tuple[float, float] | None = None

    @property
    def explicit(self) -> bool:
        return self._width is not None and (self._height is not None or self._relative_height is not None)

    def observe(self, width: float, height: float) -> bool:
        """Record the container's box. Returns True when the resolved size changed."""

        before = self.measure()
        self._observed = (float(width), float(height))
        after = self.measure()
        changed = before != after
        if changed:
            LOGGER.debug("container resized %sx%s -> %sx%s", before.width, before.height, after.width, after.height)
        return changed

    def measure(self) -> Size:
        box = self._observed
        if box is None and self._probe is not None and not self.explicit:
            box = self._probe()
            if box is not None:
                self._observed = (float(box[0]), float(box[1]))
        if box is None and not self.explicit:
            return UNMEASURED

        box_w, box_h = box if box is not None else (0.0, 0.0)
        # A laid-out container that reports 0 falls back to the variant default.
        width = self._width if self._width is not None else (box_w or self._fallback[0])
        if self._height is not None:
            height = self._height
        elif self._relative_height is not None:
            height = width * self._relative_height
        else:
            height = box_h or self._fallback[1]
        return Size(width=_to_px(width), height=_to_px(height))


def plot_area(size: Size, margins: Margins) -> tuple[float, float]:
    """Usable graph extent inside the margins, never negative."""

    graph_w = size.width - margins.left - margins.right
    graph_h = size.height - margins.top - margins.bottom
    return (max(0.0, float(graph_w)), max(0.0, float(graph_h)))


def _to_px(value: float) -> int:
    if not math.isfinite(value):
        return 0
    return max(0, int(math.floor(value)))

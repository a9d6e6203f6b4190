from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Iterable, Sequence

from quantchart.errors import ChartConfigError
from quantchart.scales import ThresholdScale


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColorBinding:
    """Stable key -> color assignment for one render pass."""

    domain: tuple[str, ...]
    palette: tuple[str, ...]
    no_data_color: str
    constant_color: str | None = None

    @property
    def constant(self) -> bool:
        """True when no point carries a category; the legend is bypassed."""

        return self.constant_color is not None

    def index_of(self, key: str | None) -> int | None:
        if key is None or key not in self.domain:
            return None
        return self.domain.index(key)

    def color_of(self, key: str | None) -> str:
        if self.constant_color is not None:
            return self.constant_color
        index = self.index_of(key)
        if index is None:
            return self.no_data_color
        return self.palette[index]

    def legend(self) -> tuple[tuple[str, str], ...]:
        if self.constant:
            return ()
        return tuple(zip(self.domain, self.palette, strict=False))


def bind_colors(
    keys: Iterable[str | None],
    explicit_domain: Sequence[str] | None = None,
    explicit_colors: Sequence[str] | None = None,
    *,
    palette: Sequence[str],
    no_data_color: str,
    default_color: str,
) -> ColorBinding:
    """Bind categorical keys to colors positionally.

    Without an explicit domain the domain is the de-duplicated keys in first-seen
    order. The palette wraps when shorter than the domain and is truncated when
    longer. When no key is present at all a single constant color is used.
    """

    key_list = [k for k in keys]
    present = [k for k in key_list if k is not None]
    colors = tuple(explicit_colors) if explicit_colors else tuple(palette)
    if not colors:
        raise ChartConfigError("color palette must not be empty")

    if not present and explicit_domain is None:
        constant = explicit_colors[0] if explicit_colors else default_color
        return ColorBinding(domain=(), palette=(), no_data_color=no_data_color, constant_color=constant)

    if explicit_domain is not None:
        domain = tuple(str(k) for k in explicit_domain)
        outside = {k for k in present if k not in domain}
        if outside:
            LOGGER.warning("%d categories outside the explicit color domain use the no-data color", len(outside))
    else:
        domain = tuple(dict.fromkeys(present))

    bound = tuple(colors[i % len(colors)] for i in range(len(domain)))
    return ColorBinding(domain=domain, palette=bound, no_data_color=no_data_color)


@dataclass(frozen=True)
class ThresholdBinding:
    """Value -> color for choropleths, by thresholds or exact categories."""

    domain: tuple[Any, ...]
    colors: tuple[str, ...]
    no_data_color: str
    categorical: bool = False

    def color_of(self, value: Any) -> str:
        if value is None:
            return self.no_data_color
        if self.categorical:
            if value in self.domain:
                return self.colors[self.domain.index(value)]
            return self.no_data_color
        try:
            return ThresholdScale(self.domain, self.colors)(value)
        except TypeError:
            return self.no_data_color

    def label_of(self, value: Any) -> str | None:
        """Legend key of the bucket `value` falls in; None for no data."""

        if value is None:
            return None
        labels = [key for key, _ in self.legend()]
        if self.categorical:
            return str(value) if value in self.domain else None
        try:
            return labels[ThresholdScale(self.domain, tuple(range(len(self.colors))))(value)]
        except TypeError:
            return None

    def legend(self) -> tuple[tuple[str, str], ...]:
        if self.categorical:
            return tuple((str(d), c) for d, c in zip(self.domain, self.colors, strict=False))
        labels: list[str] = []
        for i in range(len(self.colors)):
            if i == 0:
                labels.append(f"< {self.domain[0]}")
            elif i == len(self.domain):
                labels.append(f">= {self.domain[-1]}")
            else:
                labels.append(f"{self.domain[i - 1]}-{self.domain[i]}")
        return tuple(zip(labels, self.colors, strict=False))


def bind_thresholds(
    thresholds: Sequence[Any],
    colors: Sequence[str],
    *,
    no_data_color: str,
    categorical: bool = False,
) -> ThresholdBinding:
    domain = tuple(thresholds)
    palette = tuple(colors)
    if not domain:
        raise ChartConfigError("choropleth needs at least one threshold or category")
    if categorical:
        if len(palette) < len(domain):
            raise ChartConfigError(
                f"categorical color scale needs {len(domain)} colors, got {len(palette)}"
            )
        palette = palette[: len(domain)]
    else:
        if list(domain) != sorted(domain):
            raise ChartConfigError("thresholds must be ascending")
        if len(palette) < len(domain) + 1:
            raise ChartConfigError(
                f"threshold color scale needs {len(domain) + 1} colors, got {len(palette)}"
            )
        palette = palette[: len(domain) + 1]
    return ThresholdBinding(domain=domain, colors=palette, no_data_color=no_data_color, categorical=categorical)

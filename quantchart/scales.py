from __future__ import annotations

import bisect
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
import math
from typing import Iterable, Sequence

import numpy as np


_EPOCH = datetime(1970, 1, 1)


def clamp_coordinate(value: float, lo: float, hi: float) -> float:
    """Clamp a derived pixel coordinate; NaN maps to the low bound."""

    if lo > hi:
        lo, hi = hi, lo
    if math.isnan(value):
        return lo
    return min(hi, max(lo, value))


def zero_anchored_extent(values: Iterable[float | None]) -> tuple[float, float]:
    finite = [float(v) for v in values if v is not None and math.isfinite(v)]
    if not finite:
        return (0.0, 0.0)
    return (min(0.0, min(finite)), max(0.0, max(finite)))


@dataclass(frozen=True)
class LinearScale:
    domain: tuple[float, float]
    range: tuple[float, float]

    @property
    def degenerate(self) -> bool:
        return self.domain[0] == self.domain[1]

    def __call__(self, value: float) -> float:
        r0, r1 = self.range
        if self.degenerate:
            return (r0 + r1) / 2.0
        d0, d1 = self.domain
        out = r0 + (float(value) - d0) / (d1 - d0) * (r1 - r0)
        if math.isfinite(out):
            return out
        return clamp_coordinate(out, r0, r1)

    def map_many(self, values: Sequence[float] | np.ndarray) -> np.ndarray:
        arr = np.asarray(values, dtype=np.float64)
        r0, r1 = self.range
        if self.degenerate:
            return np.full(arr.shape, (r0 + r1) / 2.0)
        d0, d1 = self.domain
        out = r0 + (arr - d0) / (d1 - d0) * (r1 - r0)
        lo, hi = min(r0, r1), max(r0, r1)
        return np.where(np.isfinite(out), out, np.clip(np.nan_to_num(out, nan=lo), lo, hi))

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if r0 == r1 or self.degenerate:
            return d0
        return d0 + (float(pixel) - r0) / (r1 - r0) * (d1 - d0)

    def nice(self, count: int = 5) -> "LinearScale":
        d0, d1 = self.domain
        if self.degenerate:
            return self
        ticks = generate_nice_ticks(d0, d1, count)
        step = float(abs(ticks[1] - ticks[0])) if ticks.size > 1 else 0.0
        if step <= 0:
            return self
        return LinearScale(domain=(math.floor(d0 / step) * step, math.ceil(d1 / step) * step), range=self.range)

    def ticks(self, count: int = 5) -> list[float]:
        d0, d1 = self.domain
        if self.degenerate:
            return [d0]
        ticks = generate_nice_ticks(d0, d1, count)
        step = float(abs(ticks[1] - ticks[0])) if ticks.size > 1 else 1.0
        eps = step * 1e-9
        return [float(t) for t in ticks if d0 - eps <= t <= d1 + eps]


@dataclass(frozen=True)
class SqrtScale:
    """Square-root scale for area-encoded radii."""

    domain: tuple[float, float]
    range: tuple[float, float]

    def __call__(self, value: float) -> float:
        r0, r1 = self.range
        d0, d1 = self.domain
        t0, t1 = _signed_sqrt(d0), _signed_sqrt(d1)
        if t0 == t1:
            return (r0 + r1) / 2.0
        out = r0 + (_signed_sqrt(float(value)) - t0) / (t1 - t0) * (r1 - r0)
        if math.isfinite(out):
            return out
        return clamp_coordinate(out, r0, r1)

    def nice(self, count: int = 5) -> "SqrtScale":
        d0, d1 = self.domain
        if d0 == d1:
            return self
        ticks = generate_nice_ticks(d0, d1, count)
        step = float(abs(ticks[1] - ticks[0])) if ticks.size > 1 else 0.0
        if step <= 0:
            return self
        return SqrtScale(domain=(math.floor(d0 / step) * step, math.ceil(d1 / step) * step), range=self.range)


@dataclass(frozen=True)
class TimeScale:
    domain: tuple[datetime, datetime]
    range: tuple[float, float]

    @property
    def _linear(self) -> LinearScale:
        return LinearScale(domain=(to_seconds(self.domain[0]), to_seconds(self.domain[1])), range=self.range)

    def __call__(self, value: datetime) -> float:
        return self._linear(to_seconds(value))

    def map_many(self, values: Sequence[datetime]) -> np.ndarray:
        return self._linear.map_many([to_seconds(v) for v in values])

    def invert(self, pixel: float) -> datetime:
        return from_seconds(self._linear.invert(pixel), tz=self.domain[0].tzinfo)

    def ticks(self, count: int = 5) -> list[datetime]:
        return time_ticks(self.domain[0], self.domain[1], count)


@dataclass(frozen=True)
class ThresholdScale:
    """Piecewise-constant scale: output i for values with i thresholds <= value."""

    thresholds: tuple[float, ...]
    outputs: tuple[object, ...]

    def __call__(self, value: float) -> object:
        return self.outputs[bisect.bisect_right(self.thresholds, value)]


@dataclass(frozen=True)
class BandScale:
    """Discrete slots laid out along a pixel range with inner padding."""

    keys: tuple[str, ...]
    range: tuple[float, float]
    padding_inner: float = 0.0

    @property
    def step(self) -> float:
        n = len(self.keys)
        if n == 0:
            return 0.0
        extent = self.range[1] - self.range[0]
        return extent / max(1.0, n - self.padding_inner)

    @property
    def bandwidth(self) -> float:
        return max(0.0, self.step * (1.0 - self.padding_inner))

    def position(self, index: int) -> float:
        return self.range[0] + self.step * index

    def __call__(self, key: str) -> float | None:
        try:
            return self.position(self.keys.index(key))
        except ValueError:
            return None

    def band_at(self, coord: float) -> int | None:
        """Index of the band containing `coord`; None in padding gaps or outside."""

        step = self.step
        if step <= 0 or not math.isfinite(coord):
            return None
        offset = coord - self.range[0]
        index = int(math.floor(offset / step))
        if index < 0 or index >= len(self.keys):
            return None
        if offset - index * step > self.bandwidth:
            return None
        return index


def build_value_scale(
    values: Iterable[float | None],
    extent: float,
    *,
    invert: bool = True,
    tick_count: int = 5,
) -> LinearScale:
    """Zero-anchored, niced linear value axis over `[0, extent]` pixels."""

    lo, hi = zero_anchored_extent(values)
    extent = max(0.0, float(extent))
    pixel_range = (extent, 0.0) if invert else (0.0, extent)
    return LinearScale(domain=(lo, hi), range=pixel_range).nice(tick_count)


def build_time_scale(dates: Iterable[datetime | None], extent: float) -> TimeScale:
    present = [d for d in dates if d is not None]
    if not present:
        return TimeScale(domain=(_EPOCH, _EPOCH), range=(0.0, max(0.0, float(extent))))
    return TimeScale(domain=(min(present), max(present)), range=(0.0, max(0.0, float(extent))))


def build_radius_scale(radii: Iterable[float | None], min_px: float, max_px: float) -> SqrtScale | None:
    """Square-root radius scale, or None when no point supplies a radius."""

    present = [float(r) for r in radii if r is not None and math.isfinite(r)]
    if not present:
        return None
    return SqrtScale(domain=(0.0, max(0.0, max(present))), range=(float(min_px), float(max_px))).nice()


def to_seconds(value: datetime) -> float:
    if value.tzinfo is None:
        return (value - _EPOCH).total_seconds()
    return value.timestamp()


def from_seconds(seconds: float, *, tz=None) -> datetime:
    if tz is None:
        return _EPOCH + timedelta(seconds=seconds)
    return datetime.fromtimestamp(seconds, tz=timezone.utc).astimezone(tz)


# (duration in seconds, unit, step) ordered by duration.
_TIME_INTERVALS: tuple[tuple[float, str, int], ...] = (
    (1.0, "second", 1),
    (5.0, "second", 5),
    (15.0, "second", 15),
    (30.0, "second", 30),
    (60.0, "minute", 1),
    (300.0, "minute", 5),
    (900.0, "minute", 15),
    (1800.0, "minute", 30),
    (3600.0, "hour", 1),
    (3 * 3600.0, "hour", 3),
    (6 * 3600.0, "hour", 6),
    (12 * 3600.0, "hour", 12),
    (86400.0, "day", 1),
    (2 * 86400.0, "day", 2),
    (7 * 86400.0, "week", 1),
    (30 * 86400.0, "month", 1),
    (90 * 86400.0, "month", 3),
    (365 * 86400.0, "year", 1),
)


def time_ticks(start: datetime, stop: datetime, count: int) -> list[datetime]:
    """Calendar-aligned ticks between two datetimes, about `count` of them."""

    if count <= 0:
        raise ValueError("count must be > 0")
    if start > stop:
        start, stop = stop, start
    if start == stop:
        return [start]
    target = (stop - start).total_seconds() / count
    durations = [d for d, _, _ in _TIME_INTERVALS]
    i = bisect.bisect_right(durations, target)
    if i >= len(_TIME_INTERVALS):
        years = max(1, int(_nice_number(target / (365 * 86400.0), round_result=True)))
        return _year_ticks(start, stop, years)
    if i > 0 and target / durations[i - 1] < durations[i] / target:
        i -= 1
    _, unit, step = _TIME_INTERVALS[i]
    if unit == "year":
        return _year_ticks(start, stop, step)
    if unit == "month":
        return _month_ticks(start, stop, step)
    return _fixed_ticks(start, stop, unit, step)


def _fixed_ticks(start: datetime, stop: datetime, unit: str, step: int) -> list[datetime]:
    if unit == "week":
        first = start.replace(hour=0, minute=0, second=0, microsecond=0)
        first -= timedelta(days=(first.weekday() + 1) % 7)
        delta = timedelta(weeks=step)
    elif unit == "day":
        first = start.replace(hour=0, minute=0, second=0, microsecond=0)
        delta = timedelta(days=step)
    elif unit == "hour":
        first = start.replace(hour=start.hour - start.hour % step, minute=0, second=0, microsecond=0)
        delta = timedelta(hours=step)
    elif unit == "minute":
        first = start.replace(minute=start.minute - start.minute % step, second=0, microsecond=0)
        delta = timedelta(minutes=step)
    else:
        first = start.replace(second=start.second - start.second % step, microsecond=0)
        delta = timedelta(seconds=step)
    out: list[datetime] = []
    tick = first
    while tick <= stop:
        if tick >= start:
            out.append(tick)
        tick += delta
    return out


def _month_ticks(start: datetime, stop: datetime, step: int) -> list[datetime]:
    out: list[datetime] = []
    year, month = start.year, start.month - (start.month - 1) % step
    while True:
        tick = start.replace(year=year, month=month, day=1, hour=0, minute=0, second=0, microsecond=0)
        if tick > stop:
            return out
        if tick >= start:
            out.append(tick)
        month += step
        while month > 12:
            month -= 12
            year += 1


def _year_ticks(start: datetime, stop: datetime, step: int) -> list[datetime]:
    out: list[datetime] = []
    year = max(1, start.year - start.year % step)
    while True:
        tick = start.replace(year=year, month=1, day=1, hour=0, minute=0, second=0, microsecond=0)
        if tick > stop:
            return out
        if tick >= start:
            out.append(tick)
        year += step


def generate_nice_ticks(vmin: float, vmax: float, target: int) -> np.ndarray:
    if target <= 0:
        raise ValueError("target must be > 0")
    if vmin == vmax:
        return np.asarray([vmin], dtype=np.float64)

    span = _nice_number(vmax - vmin, round_result=False)
    step = _nice_number(span / max(target - 1, 1), round_result=True)
    tick_min = np.floor(vmin / step) * step
    tick_max = np.ceil(vmax / step) * step

    ticks = np.arange(tick_min, tick_max + 0.5 * step, step, dtype=np.float64)
    # Normalize floating-point drift so values like -4.44e-16 become 0.
    ticks = np.rint(ticks / step) * step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return ticks


_ABBREVIATIONS = ((1e12, "T"), (1e9, "B"), (1e6, "M"), (1e3, "K"))


def format_value(value: float | None, prefix: str = "", suffix: str = "", *, decimals: int = 2) -> str:
    """Compact number with K/M/B/T abbreviation, e.g. 1532000 -> "1.53M"."""

    if value is None:
        return "NA"
    if not math.isfinite(value):
        return str(value)
    abs_v = abs(value)
    unit = ""
    scaled = value
    for threshold, name in _ABBREVIATIONS:
        if abs_v >= threshold:
            scaled = value / threshold
            unit = name
            break
    text = _trim_decimal(scaled, decimals)
    return f"{prefix}{text}{unit}{suffix}"


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    abs_v = abs(value)
    decimals = _decimals_from_step(step) if step is not None else 6
    if abs_v != 0 and (step is not None and abs(step) < 1e-4 or abs_v < 1e-6):
        return f"{value:.4e}"

    d = Decimal(str(value))
    quant = Decimal("1").scaleb(-decimals)
    try:
        q = d.quantize(quant)
    except InvalidOperation:
        q = d
    out = format(q, "f")
    # Only trim trailing zeros for fractional values (preserve integer zeros like 30, 40).
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out


def format_ticks_for_axis(ticks: Sequence[float]) -> list[str]:
    """Tick labels with decimals consistent across the axis; large steps abbreviate."""

    values = [float(v) for v in ticks]
    if not values:
        return []
    if len(values) == 1:
        return [format_tick(values[0])]
    step = abs(values[1] - values[0])
    if step >= 1000:
        return [format_value(v) for v in values]
    return [format_tick(v, step=step) for v in values]


def _trim_decimal(value: float, decimals: int) -> str:
    out = f"{value:.{decimals}f}"
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out


def _signed_sqrt(value: float) -> float:
    return math.copysign(math.sqrt(abs(value)), value)


def _nice_number(value: float, *, round_result: bool) -> float:
    exp = np.floor(np.log10(value))
    frac = value / (10**exp)

    if round_result:
        if frac < 1.5:
            nice_frac = 1.0
        elif frac < 3.0:
            nice_frac = 2.0
        elif frac < 7.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0
    else:
        if frac <= 1.0:
            nice_frac = 1.0
        elif frac <= 2.0:
            nice_frac = 2.0
        elif frac <= 5.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0

    return float(nice_frac * (10**exp))


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    d = Decimal(str(step)).normalize()
    exp = d.as_tuple().exponent
    decimals = max(0, -int(exp))
    return min(12, decimals)

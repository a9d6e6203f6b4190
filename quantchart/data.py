from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
import math
from typing import Any, Literal

import numpy as np

from quantchart.errors import ChartDataError


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]


XValue = float | datetime | None


@dataclass(frozen=True)
class DataPoint:
    y: float | None = None
    x: XValue = None
    category: str | None = None
    radius: float | None = None
    label: str | None = None
    payload: Any = None

    @property
    def value(self) -> float | None:
        return self.y


@dataclass(frozen=True)
class CompositePoint:
    """One row of aligned component values (multi-line, stacked, grouped, dumbbell)."""

    values: tuple[float | None, ...]
    x: XValue = None
    label: str | None = None
    payload: Any = None


@dataclass(frozen=True)
class ReferenceMarker:
    value: float
    label: str = ""
    axis: Literal["x", "y"] = "y"
    value2: float | None = None


@dataclass(frozen=True)
class GeoDatum:
    feature_id: str | None = None
    value: Any = None
    category: str | None = None
    lon: float | None = None
    lat: float | None = None
    radius: float | None = None
    label: str | None = None
    payload: Any = None


_Y_KEYS = ("y", "value", "size")
_X_KEYS = ("x", "date")
_CATEGORY_KEYS = ("category", "color")
_PAYLOAD_KEYS = ("payload", "data")
_COMPOSITE_KEYS = ("values", "y", "size", "x")


def coerce_points(records: Any, *, date_format: str | None = None) -> tuple[DataPoint, ...]:
    """Normalize records (dataclasses, mappings or a DataFrame) into DataPoints.

    When `date_format` is given every `x` is parsed as a date; otherwise numeric
    `x` values are coerced to float and datetimes pass through.
    """

    out: list[DataPoint] = []
    for i, raw in enumerate(_iter_records(records)):
        if isinstance(raw, DataPoint):
            point = raw
        elif isinstance(raw, Mapping):
            point = DataPoint(
                y=_pick(raw, _Y_KEYS),
                x=_pick(raw, _X_KEYS),
                category=_pick(raw, _CATEGORY_KEYS),
                radius=raw.get("radius"),
                label=raw.get("label"),
                payload=_pick(raw, _PAYLOAD_KEYS),
            )
        else:
            raise ChartDataError(f"unsupported record type at index {i}: {type(raw)!r}")
        out.append(
            DataPoint(
                y=coerce_number(point.y, label="y", index=i),
                x=_coerce_x(point.x, date_format=date_format, index=i),
                category=None if point.category is None else str(point.category),
                radius=coerce_number(point.radius, label="radius", index=i),
                label=None if point.label is None else str(point.label),
                payload=point.payload,
            )
        )
    return tuple(out)


def coerce_composites(records: Any, *, date_format: str | None = None) -> tuple[CompositePoint, ...]:
    out: list[CompositePoint] = []
    for i, raw in enumerate(_iter_records(records)):
        if isinstance(raw, CompositePoint):
            row = raw
        elif isinstance(raw, Mapping):
            values_key = next(
                (k for k in _COMPOSITE_KEYS if k in raw and _is_sequence(raw[k])),
                None,
            )
            if values_key is None:
                raise ChartDataError(f"record at index {i} has no component value list")
            x_raw = None
            for key in _X_KEYS:
                if key != values_key and key in raw:
                    x_raw = raw[key]
                    break
            row = CompositePoint(
                values=tuple(raw[values_key]),
                x=x_raw,
                label=raw.get("label"),
                payload=_pick(raw, _PAYLOAD_KEYS),
            )
        else:
            raise ChartDataError(f"unsupported record type at index {i}: {type(raw)!r}")
        out.append(
            CompositePoint(
                values=tuple(coerce_number(v, label="values", index=i) for v in row.values),
                x=_coerce_x(row.x, date_format=date_format, index=i),
                label=None if row.label is None else str(row.label),
                payload=row.payload,
            )
        )
    return tuple(out)


def coerce_geo(records: Any) -> tuple[GeoDatum, ...]:
    out: list[GeoDatum] = []
    for i, raw in enumerate(_iter_records(records)):
        if isinstance(raw, GeoDatum):
            datum = raw
        elif isinstance(raw, Mapping):
            datum = GeoDatum(
                feature_id=_pick(raw, ("feature_id", "countryCode", "id")),
                value=_pick(raw, ("value", "x")),
                category=_pick(raw, _CATEGORY_KEYS),
                lon=_pick(raw, ("lon", "long", "lng")),
                lat=raw.get("lat"),
                radius=raw.get("radius"),
                label=raw.get("label"),
                payload=_pick(raw, _PAYLOAD_KEYS),
            )
        else:
            raise ChartDataError(f"unsupported record type at index {i}: {type(raw)!r}")
        value = datum.value
        if value is not None and not isinstance(value, str):
            value = coerce_number(value, label="value", index=i)
        out.append(
            GeoDatum(
                feature_id=None if datum.feature_id is None else str(datum.feature_id),
                value=value,
                category=None if datum.category is None else str(datum.category),
                lon=coerce_number(datum.lon, label="lon", index=i),
                lat=coerce_number(datum.lat, label="lat", index=i),
                radius=coerce_number(datum.radius, label="radius", index=i),
                label=None if datum.label is None else str(datum.label),
                payload=datum.payload,
            )
        )
    return tuple(out)


def coerce_number(raw: Any, *, label: str, index: int) -> float | None:
    """Coerce a scalar to float; None and NaN both mean "absent"."""

    if raw is None:
        return None
    if isinstance(raw, bool):
        return float(raw)
    if isinstance(raw, Decimal):
        value = float(raw)
    else:
        try:
            value = float(raw)
        except (TypeError, ValueError) as exc:
            raise ChartDataError(f"{label} contains non-numeric value at index {index}: {raw!r}") from exc
    if math.isnan(value):
        return None
    return value


def parse_date(raw: Any, date_format: str) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    if pd is not None and isinstance(raw, pd.Timestamp):
        return raw.to_pydatetime()
    if isinstance(raw, np.datetime64):
        # Naive UTC wall time; `item()` never applies the host timezone.
        return raw.astype("datetime64[us]").item()
    try:
        return datetime.strptime(str(raw), date_format)
    except ValueError as exc:
        raise ChartDataError(f"cannot parse date {raw!r} with format {date_format!r}") from exc


def _coerce_x(raw: Any, *, date_format: str | None, index: int) -> XValue:
    if raw is None or (isinstance(raw, np.datetime64) and np.isnat(raw)):
        return None
    if date_format is not None:
        return parse_date(raw, date_format)
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, np.datetime64):
        return raw.astype("datetime64[us]").item()
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day)
    return coerce_number(raw, label="x", index=index)


def _pick(raw: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _is_sequence(value: Any) -> bool:
    if isinstance(value, np.ndarray):
        return value.ndim == 1
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _iter_records(records: Any) -> list[Any]:
    if records is None:
        return []
    if pd is not None and isinstance(records, pd.DataFrame):
        rows = records.to_dict(orient="records")
        return [{k: (None if _is_missing(v) else v) for k, v in row.items()} for row in rows]
    if isinstance(records, (str, bytes, bytearray, Mapping)) or not isinstance(records, Sequence):
        raise ChartDataError(f"unsupported data input type: {type(records)!r}")
    return list(records)


def _is_missing(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False

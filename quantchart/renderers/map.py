from __future__ import annotations

from collections.abc import Mapping
import logging
import math
from typing import Any, Callable, Sequence

import numpy as np

from quantchart.colors import bind_thresholds
from quantchart.config import ChartConfig
from quantchart.data import GeoDatum
from quantchart.errors import ChartConfigError, ChartDataError
from quantchart.geometry import Circle, HitRegion, Path, Primitive, RenderResult, Text, polyline_commands
from quantchart.hit_testing import RegionHitTester, TessellationCache, VoronoiHitTester
from quantchart.renderers.base import EMPTY_STATE, PlotFrame, legend_for, legend_from_pairs, series_colors
from quantchart.scales import build_radius_scale
from quantchart.selection import HighlightState, opacity_for
from quantchart.sizing import Size
from quantchart.theme import Theme


LOGGER = logging.getLogger(__name__)

Projection = Callable[[float, float], "tuple[float, float]"]
Ring = np.ndarray


def equirectangular(
    width: float,
    height: float,
    *,
    scale: float = 190.0,
    center: tuple[float, float] = (10.0, 10.0),
) -> Projection:
    """Plate carree projection with `center` (lon, lat) at the middle of the plot."""

    lam0 = math.radians(center[0])
    phi0 = math.radians(center[1])
    tx, ty = width / 2.0, height / 2.0

    def project(lon: float, lat: float) -> tuple[float, float]:
        return (tx + scale * (math.radians(lon) - lam0), ty - scale * (math.radians(lat) - phi0))

    return project


def iter_features(geodata: Any) -> list[Mapping[str, Any]]:
    """Features of a GeoJSON-like FeatureCollection (or a plain feature list)."""

    if geodata is None:
        return []
    if isinstance(geodata, Mapping):
        if geodata.get("type") == "Feature":
            return [geodata]
        features = geodata.get("features")
        if features is None:
            raise ChartDataError("geodata mapping has no `features`")
        return list(features)
    return list(geodata)


def feature_id(feature: Mapping[str, Any], id_property: str | None = None) -> str | None:
    props = feature.get("properties") or {}
    raw = props.get(id_property) if id_property is not None else feature.get("id")
    return None if raw is None else str(raw)


def project_rings(geometry: Mapping[str, Any] | None, projection: Projection) -> list[Ring]:
    if not geometry:
        return []
    kind = geometry.get("type")
    coords = geometry.get("coordinates") or []
    if kind == "Polygon":
        polygons = [coords]
    elif kind == "MultiPolygon":
        polygons = coords
    else:
        LOGGER.debug("skipping unsupported geometry type %r", kind)
        return []
    out: list[Ring] = []
    for polygon in polygons:
        for ring in polygon:
            projected = [projection(float(p[0]), float(p[1])) for p in ring]
            if len(projected) >= 3:
                out.append(np.asarray(projected, dtype=np.float64))
    return out


def _region_commands(rings: Sequence[Ring]) -> tuple[tuple[Any, ...], ...]:
    commands: tuple[tuple[Any, ...], ...] = ()
    for ring in rings:
        commands += polyline_commands([(float(x), float(y)) for x, y in ring], closed=True)
    return commands


def render_map(
    data: Sequence[GeoDatum],
    size: Size,
    config: ChartConfig,
    theme: Theme,
    state: HighlightState = EMPTY_STATE,
    *,
    geodata: Any = None,
    projection: Projection | None = None,
    id_property: str | None = None,
    cache: TessellationCache | None = None,
    source: Any = None,
) -> RenderResult:
    """Choropleth or dot-density map over externally supplied geometry.

    `projection` maps (lon, lat) to plot pixels; without one an equirectangular
    projection built from `map_scale`/`map_center` is used.
    """

    frame = PlotFrame(size, config)
    if config.map_kind == "choropleth" and geodata is None:
        raise ChartConfigError("choropleth map needs geodata")
    if projection is not None and not callable(projection):
        raise ChartConfigError("map projection must be callable as projection(lon, lat)")
    if not size.measured:
        return frame.empty()

    project = projection or equirectangular(frame.width, frame.height, scale=config.map_scale, center=config.map_center)
    regions = [(f, project_rings(f.get("geometry"), project)) for f in iter_features(geodata)]

    if config.map_kind == "choropleth":
        return _choropleth(frame, data, regions, config, theme, state, id_property)
    return _dot_density(frame, data, regions, project, config, theme, state, cache, source)


def _choropleth(
    frame: PlotFrame,
    data: Sequence[GeoDatum],
    regions: list[tuple[Mapping[str, Any], list[Ring]]],
    config: ChartConfig,
    theme: Theme,
    state: HighlightState,
    id_property: str | None,
) -> RenderResult:
    binding = bind_thresholds(
        config.thresholds,
        config.colors or theme.categorical,
        no_data_color=theme.no_data,
        categorical=config.categorical,
    )
    by_id = {d.feature_id: d for d in data if d.feature_id is not None}
    prims: list[Primitive] = []
    hits: list[tuple[GeoDatum, list[Ring]]] = []
    for feature, rings in regions:
        if not rings:
            continue
        datum = by_id.get(feature_id(feature, id_property))
        value = None if datum is None else datum.value
        opacity = 1.0
        if datum is not None:
            opacity = opacity_for(
                state,
                category=binding.label_of(value),
                label=datum.label or datum.feature_id,
                is_hovered=datum is state.hovered,
                dim_opacity=config.dim_opacity,
            )
            hits.append((datum, rings))
        elif state.hovered is not None or state.selected_category is not None:
            opacity = config.dim_opacity
        prims.append(
            Path(
                _region_commands(rings),
                fill=binding.color_of(value),
                stroke=theme.map_border,
                stroke_width=config.map_border_width,
                opacity=opacity,
                datum=datum,
            )
        )
    if not hits:
        LOGGER.debug("no data joined to %d map features", len(regions))
    legend = legend_from_pairs(binding.legend(), state, config.dim_opacity)
    return frame.result(prims, hit_tester=RegionHitTester(hits), scales={"color": binding}, legend=legend, empty=not prims)


def _dot_density(
    frame: PlotFrame,
    data: Sequence[GeoDatum],
    regions: list[tuple[Mapping[str, Any], list[Ring]]],
    project: Projection,
    config: ChartConfig,
    theme: Theme,
    state: HighlightState,
    cache: TessellationCache | None,
    source: Any,
) -> RenderResult:
    prims: list[Primitive] = [
        Path(_region_commands(rings), fill=theme.no_data, stroke=theme.map_border, stroke_width=config.map_border_width)
        for _, rings in regions
        if rings
    ]
    dots = [d for d in data if d.lon is not None and d.lat is not None]
    radius = build_radius_scale([d.radius for d in dots], config.min_radius, config.point_radius)
    binding = series_colors((d.category for d in dots), config, theme)
    if radius is not None:
        dots.sort(key=lambda d: d.radius or 0.0, reverse=True)

    xs: list[float] = []
    ys: list[float] = []
    for d in dots:
        x, y = project(d.lon, d.lat)
        xs.append(x)
        ys.append(y)
        r = config.point_radius if radius is None else radius(d.radius or 0.0)
        color = binding.color_of(d.category)
        opacity = opacity_for(
            state,
            category=d.category,
            label=d.label,
            is_hovered=d is state.hovered,
            dim_opacity=config.dim_opacity,
        )
        prims.append(Circle(x, y, r, fill=color, stroke=color, fill_opacity=0.8, opacity=opacity, datum=d))
        if config.show_labels and d.label:
            prims.append(Text(x + r + 2, y, d.label, fill=theme.axis_text, font_size=10.0, dy=4, opacity=opacity, role="label", datum=d))

    def build() -> VoronoiHitTester:
        return VoronoiHitTester(xs, ys, dots, (0.0, 0.0, frame.width, frame.height))

    tester = cache.get(data if source is None else source, (frame.width, frame.height), build) if cache is not None else build()
    for i, d in enumerate(dots):
        cell = tester.cell(i)
        if cell is not None and cell.shape[0] >= 3:
            prims.append(HitRegion(tuple((float(a), float(b)) for a, b in cell), datum=d))
    return frame.result(
        prims,
        hit_tester=tester,
        scales={"radius": radius},
        legend=legend_for(binding, state, config.dim_opacity),
        empty=not prims,
    )

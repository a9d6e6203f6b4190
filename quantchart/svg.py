from __future__ import annotations

from typing import Any, Iterable
import xml.etree.ElementTree as ET

from quantchart.geometry import Circle, HitRegion, Line, Mark, Path, Polygon, Primitive, Rect, RenderResult, Text
from quantchart.theme import Theme


SVG_NS = "http://www.w3.org/2000/svg"


def to_svg(result: RenderResult, theme: Theme, *, include_hit_regions: bool = True) -> str:
    """Serialize a render result to standalone SVG markup."""

    root = ET.Element(
        "svg",
        {
            "xmlns": SVG_NS,
            "width": f"{result.width}px",
            "height": f"{result.height}px",
            "viewBox": f"0 0 {result.width} {result.height}",
        },
    )
    if result.empty:
        return ET.tostring(root, encoding="unicode")
    ox, oy = result.origin
    group = ET.SubElement(root, "g", {"transform": f"translate({_fmt(ox)},{_fmt(oy)})"})
    for prim in result.primitives:
        if isinstance(prim, HitRegion) and not include_hit_regions:
            continue
        _append(group, prim, theme)
    return ET.tostring(root, encoding="unicode")


def path_data(commands: Iterable[tuple[Any, ...]]) -> str:
    parts: list[str] = []
    for cmd in commands:
        op = cmd[0]
        if op == "Z":
            parts.append("Z")
            continue
        coords = cmd[1:]
        pairs = [f"{_fmt(coords[i])},{_fmt(coords[i + 1])}" for i in range(0, len(coords), 2)]
        parts.append(op + " ".join(pairs))
    return "".join(parts)


def _append(parent: ET.Element, prim: Primitive, theme: Theme) -> None:
    if isinstance(prim, Rect):
        attrs = {"x": prim.x, "y": prim.y, "width": prim.width, "height": prim.height}
        ET.SubElement(parent, "rect", _attrs(attrs, prim))
    elif isinstance(prim, Line):
        attrs = {"x1": prim.x1, "y1": prim.y1, "x2": prim.x2, "y2": prim.y2}
        ET.SubElement(parent, "line", _attrs(attrs, prim))
    elif isinstance(prim, Circle):
        ET.SubElement(parent, "circle", _attrs({"cx": prim.cx, "cy": prim.cy, "r": prim.r}, prim))
    elif isinstance(prim, HitRegion):
        elem = ET.SubElement(parent, "path", _attrs({"d": _ring_data(prim.points)}, prim))
        elem.set("fill", "#FFFFFF")
        elem.set("pointer-events", "all")
    elif isinstance(prim, Polygon):
        points = " ".join(f"{_fmt(x)},{_fmt(y)}" for x, y in prim.points)
        ET.SubElement(parent, "polygon", _attrs({"points": points}, prim))
    elif isinstance(prim, Path):
        ET.SubElement(parent, "path", _attrs({"d": path_data(prim.commands), "fill-rule": "evenodd"}, prim))
    elif isinstance(prim, Text):
        attrs: dict[str, Any] = {
            "x": prim.x,
            "y": prim.y,
            "dy": prim.dy,
            "text-anchor": prim.anchor,
            "font-size": prim.font_size,
            "font-family": theme.font_family,
        }
        if prim.bold:
            attrs["font-weight"] = "bold"
        elem = ET.SubElement(parent, "text", _attrs(attrs, prim, default_fill=theme.axis_text))
        elem.text = prim.text


def _ring_data(points: Iterable[tuple[float, float]]) -> str:
    pts = list(points)
    if not pts:
        return ""
    head = f"M{_fmt(pts[0][0])},{_fmt(pts[0][1])}"
    return head + "".join(f"L{_fmt(x)},{_fmt(y)}" for x, y in pts[1:]) + "Z"


def _attrs(geometry: dict[str, Any], mark: Mark, *, default_fill: str | None = None) -> dict[str, str]:
    out = {k: (_fmt(v) if isinstance(v, (int, float)) else str(v)) for k, v in geometry.items()}
    fill = mark.fill if mark.fill is not None else default_fill
    out["fill"] = fill if fill is not None else "none"
    if mark.stroke is not None:
        out["stroke"] = mark.stroke
        out["stroke-width"] = _fmt(mark.stroke_width)
    if mark.dash:
        out["stroke-dasharray"] = ",".join(_fmt(d) for d in mark.dash)
    if mark.opacity != 1.0:
        out["opacity"] = _fmt(mark.opacity)
    if mark.fill_opacity != 1.0:
        out["fill-opacity"] = _fmt(mark.fill_opacity)
    out["class"] = mark.role
    return out


def _fmt(value: float) -> str:
    out = f"{float(value):.2f}"
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out

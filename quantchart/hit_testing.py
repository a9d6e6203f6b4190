from __future__ import annotations

import bisect
import logging
import math
from typing import Any, Callable, Generic, Protocol, Sequence, TypeVar

import numpy as np
from scipy.spatial import Delaunay, QhullError

from quantchart.scales import BandScale


LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Bounds = tuple[float, float, float, float]  # x0, y0, x1, y1


class HitTester(Protocol):
    def hit(self, x: float, y: float) -> Any:
        """Datum under the plot-relative pointer position, or None."""
        ...


def bisect_nearest(keys: Sequence[float], query: float) -> int | None:
    """Index of the key nearest to `query` in an ascending sequence.

    The two neighbors around the insertion point are compared; a tie goes to
    the later one. Queries past either end return the first/last index.
    """

    n = len(keys)
    if n == 0 or not math.isfinite(query):
        return None
    i = bisect.bisect_left(keys, query)
    if i >= n:
        return n - 1
    if i == 0:
        return 0
    if query - keys[i - 1] < keys[i] - query:
        return i - 1
    return i


class OrderedHitTester(Generic[T]):
    """Nearest sample along an ordered x axis (line, multi-line, area)."""

    def __init__(self, keys: Sequence[float], items: Sequence[T], invert: Callable[[float], float]) -> None:
        if len(keys) != len(items):
            raise ValueError("keys and items must have the same length")
        if any(b < a for a, b in zip(keys, keys[1:])):
            raise ValueError("keys must be sorted ascending")
        self._keys = list(keys)
        self._items = list(items)
        self._invert = invert

    def hit(self, x: float, y: float = 0.0) -> T | None:
        index = bisect_nearest(self._keys, self._invert(x))
        if index is None:
            return None
        return self._items[index]


class BandHitTester(Generic[T]):
    """Category slot under the pointer for bar-like charts."""

    def __init__(self, scale: BandScale, items: Sequence[T], *, axis: str = "x") -> None:
        if axis not in ("x", "y"):
            raise ValueError("axis must be 'x' or 'y'")
        self._scale = scale
        self._items = list(items)
        self._axis = axis

    def hit(self, x: float, y: float) -> T | None:
        index = self._scale.band_at(x if self._axis == "x" else y)
        if index is None or index >= len(self._items):
            return None
        return self._items[index]


class VoronoiHitTester(Generic[T]):
    """Exact nearest-point hit testing over a clipped Voronoi partition.

    Cells are built from the Delaunay neighbor graph by half-plane clipping of
    the bounds. `hit` walks the same graph greedily, which always ends at the
    nearest seed. Coincident points resolve to the first of them.
    """

    def __init__(self, xs: Sequence[float], ys: Sequence[float], items: Sequence[T], bounds: Bounds) -> None:
        if not (len(xs) == len(ys) == len(items)):
            raise ValueError("xs, ys and items must have the same length")
        x0, y0, x1, y1 = bounds
        self._bounds = (min(x0, x1), min(y0, y1), max(x0, x1), max(y0, y1))
        self._items = list(items)

        owners: list[int] = []
        seen: dict[tuple[float, float], int] = {}
        self._seed_of_item: list[int | None] = []
        for i, (x, y) in enumerate(zip(xs, ys, strict=True)):
            x, y = float(x), float(y)
            if not (math.isfinite(x) and math.isfinite(y)):
                self._seed_of_item.append(None)
                continue
            key = (x, y)
            if key in seen:
                self._seed_of_item.append(None)
                continue
            seen[key] = len(owners)
            self._seed_of_item.append(len(owners))
            owners.append(i)
        self._owners = owners
        self._seeds = np.asarray(list(seen.keys()), dtype=np.float64).reshape(-1, 2)
        self._neighbors = _neighbor_graph(self._seeds)
        self._cells = [self._clip_cell(s) for s in range(len(owners))]
        self._last = 0
        LOGGER.debug("built voronoi partition over %d seeds", len(owners))

    @property
    def cells(self) -> list[np.ndarray | None]:
        return [self.cell(i) for i in range(len(self._items))]

    def cell(self, index: int) -> np.ndarray | None:
        """Clipped cell polygon (k, 2) of item `index`; None for coincident duplicates."""

        seed = self._seed_of_item[index]
        if seed is None:
            return None
        return self._cells[seed]

    def find(self, x: float, y: float) -> int | None:
        n = len(self._owners)
        if n == 0 or not (math.isfinite(x) and math.isfinite(y)):
            return None
        query = np.asarray([x, y], dtype=np.float64)
        current = self._last if self._last < n else 0
        best_d = float(np.sum((self._seeds[current] - query) ** 2))
        while True:
            nbrs = self._neighbors[current]
            if not nbrs:
                break
            d = np.sum((self._seeds[nbrs] - query) ** 2, axis=1)
            j = int(np.argmin(d))
            if d[j] >= best_d:
                break
            current, best_d = nbrs[j], float(d[j])
        self._last = current
        return self._owners[current]

    def hit(self, x: float, y: float) -> T | None:
        bx0, by0, bx1, by1 = self._bounds
        if not (bx0 <= x <= bx1 and by0 <= y <= by1):
            return None
        index = self.find(x, y)
        if index is None:
            return None
        return self._items[index]

    def _clip_cell(self, seed: int) -> np.ndarray:
        bx0, by0, bx1, by1 = self._bounds
        poly = np.asarray([[bx0, by0], [bx1, by0], [bx1, by1], [bx0, by1]], dtype=np.float64)
        p = self._seeds[seed]
        for other in self._neighbors[seed]:
            q = self._seeds[other]
            normal = q - p
            offset = (float(q @ q) - float(p @ p)) / 2.0
            poly = _clip_half_plane(poly, normal, offset)
            if poly.shape[0] == 0:
                break
        return poly


class RegionHitTester(Generic[T]):
    """Point-in-polygon lookup over projected map regions (even-odd rule)."""

    def __init__(self, regions: Sequence[tuple[T, Sequence[np.ndarray]]]) -> None:
        self._regions = [(item, [np.asarray(r, dtype=np.float64).reshape(-1, 2) for r in rings]) for item, rings in regions]

    def hit(self, x: float, y: float) -> T | None:
        # Later regions paint on top.
        for item, rings in reversed(self._regions):
            inside = False
            for ring in rings:
                if _ring_contains(ring, x, y):
                    inside = not inside
            if inside:
                return item
        return None


class CircleHitTester(Generic[T]):
    """Topmost circle containing the pointer (circle packing)."""

    def __init__(self, items: Sequence[T], cx: Sequence[float], cy: Sequence[float], r: Sequence[float]) -> None:
        if not (len(items) == len(cx) == len(cy) == len(r)):
            raise ValueError("items, cx, cy and r must have the same length")
        self._items = list(items)
        self._centers = np.column_stack([np.asarray(cx, dtype=np.float64), np.asarray(cy, dtype=np.float64)]).reshape(-1, 2)
        self._r2 = np.asarray(r, dtype=np.float64) ** 2

    def hit(self, x: float, y: float) -> T | None:
        if not self._items:
            return None
        d2 = np.sum((self._centers - np.asarray([x, y], dtype=np.float64)) ** 2, axis=1)
        inside = np.flatnonzero(d2 <= self._r2)
        if inside.size == 0:
            return None
        return self._items[int(inside[-1])]


class TessellationCache:
    """Keeps one Voronoi partition alive across pointer moves.

    The partition is rebuilt only when the data object or the plot size changes.
    """

    def __init__(self) -> None:
        self._data: Any = None
        self._size: tuple[float, float] | None = None
        self._tester: VoronoiHitTester | None = None
        self.builds = 0

    def get(self, data: Any, size: tuple[float, float], build: Callable[[], VoronoiHitTester]) -> VoronoiHitTester:
        if self._tester is not None and self._data is data and self._size == size:
            return self._tester
        self._tester = build()
        self._data = data
        self._size = size
        self.builds += 1
        return self._tester

    def invalidate(self) -> None:
        self._data = None
        self._size = None
        self._tester = None


def _neighbor_graph(seeds: np.ndarray) -> list[list[int]]:
    n = seeds.shape[0]
    if n <= 1:
        return [[] for _ in range(n)]
    if n >= 3:
        try:
            tri = Delaunay(seeds)
        except QhullError:
            LOGGER.debug("degenerate point set for triangulation; using collinear ordering")
        else:
            indptr, indices = tri.vertex_neighbor_vertices
            graph = [sorted(int(j) for j in indices[indptr[i] : indptr[i + 1]]) for i in range(n)]
            # Near-coincident points qhull leaves out of the triangulation.
            for point, _, vertex in np.asarray(tri.coplanar, dtype=np.int64).reshape(-1, 3):
                point, vertex = int(point), int(vertex)
                for j in [vertex, *graph[vertex]]:
                    if j != point and j not in graph[point]:
                        graph[point].append(j)
                        graph[j].append(point)
            return graph
    # Collinear (or fewer than 3) seeds: a path ordered along the line is exact.
    far = int(np.argmax(np.sum((seeds - seeds[0]) ** 2, axis=1)))
    direction = seeds[far] - seeds[0]
    order = np.argsort((seeds - seeds[0]) @ direction, kind="stable")
    graph = [[] for _ in range(n)]
    for a, b in zip(order[:-1], order[1:]):
        graph[int(a)].append(int(b))
        graph[int(b)].append(int(a))
    return graph


def _clip_half_plane(poly: np.ndarray, normal: np.ndarray, offset: float) -> np.ndarray:
    """Sutherland-Hodgman clip keeping points with normal . p <= offset."""

    out: list[np.ndarray] = []
    k = poly.shape[0]
    for i in range(k):
        cur = poly[i]
        nxt = poly[(i + 1) % k]
        dc = float(normal @ cur) - offset
        dn = float(normal @ nxt) - offset
        if dc <= 0:
            out.append(cur)
        if (dc <= 0) != (dn <= 0):
            t = dc / (dc - dn)
            out.append(cur + t * (nxt - cur))
    if not out:
        return np.empty((0, 2), dtype=np.float64)
    return np.asarray(out, dtype=np.float64)


def _ring_contains(ring: np.ndarray, x: float, y: float) -> bool:
    if ring.shape[0] < 3:
        return False
    xs = ring[:, 0]
    ys = ring[:, 1]
    xj = np.roll(xs, 1)
    yj = np.roll(ys, 1)
    crosses = (ys > y) != (yj > y)
    with np.errstate(divide="ignore", invalid="ignore"):
        x_at = (xj - xs) * (y - ys) / (yj - ys) + xs
    return bool(np.count_nonzero(crosses & (x < x_at)) % 2 == 1)

from __future__ import annotations

import unittest

import numpy as np

from quantchart.hit_testing import (
    BandHitTester,
    CircleHitTester,
    OrderedHitTester,
    RegionHitTester,
    TessellationCache,
    VoronoiHitTester,
    bisect_nearest,
)
from quantchart.scales import BandScale


def _polygon_area(poly: np.ndarray) -> float:
    x = poly[:, 0]
    y = poly[:, 1]
    return 0.5 * abs(float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


class HitTestingTests(unittest.TestCase):
    def test_bisect_nearest_tie_goes_to_later_sample(self) -> None:
        keys = [0.0, 10.0, 20.0]
        self.assertEqual(bisect_nearest(keys, 5.0), 1)
        self.assertEqual(bisect_nearest(keys, 4.0), 0)
        self.assertEqual(bisect_nearest(keys, 15.0), 2)

    def test_bisect_nearest_clamps_past_either_end(self) -> None:
        keys = [0.0, 10.0, 20.0]
        self.assertEqual(bisect_nearest(keys, -5.0), 0)
        self.assertEqual(bisect_nearest(keys, 25.0), 2)
        self.assertIsNone(bisect_nearest([], 1.0))
        self.assertIsNone(bisect_nearest(keys, float("nan")))

    def test_ordered_tester_inverts_pixels_before_lookup(self) -> None:
        tester = OrderedHitTester([0.0, 10.0, 20.0], ["a", "b", "c"], invert=lambda px: px / 10.0)
        self.assertEqual(tester.hit(50.0, 0.0), "b")
        self.assertEqual(tester.hit(190.0, 0.0), "c")

    def test_ordered_tester_rejects_unsorted_keys(self) -> None:
        with self.assertRaisesRegex(ValueError, "sorted"):
            OrderedHitTester([2.0, 1.0], ["a", "b"], invert=float)

    def test_band_tester_uses_configured_axis(self) -> None:
        scale = BandScale(keys=("0", "1"), range=(0.0, 100.0), padding_inner=0.0)
        tester = BandHitTester(scale, ["first", "second"], axis="y")
        self.assertEqual(tester.hit(0.0, 75.0), "second")
        self.assertEqual(tester.hit(99.0, 10.0), "first")
        self.assertIsNone(tester.hit(0.0, 150.0))

    def test_voronoi_lookup_matches_brute_force_nearest(self) -> None:
        rng = np.random.default_rng(7)
        pts = rng.uniform(0.0, 100.0, size=(200, 2))
        tester = VoronoiHitTester(pts[:, 0], pts[:, 1], list(range(200)), (0.0, 0.0, 100.0, 100.0))
        for qx, qy in rng.uniform(0.0, 100.0, size=(50, 2)):
            found = tester.hit(float(qx), float(qy))
            assert found is not None
            d = np.sum((pts - np.asarray([qx, qy])) ** 2, axis=1)
            self.assertAlmostEqual(float(d[found]), float(d.min()))

    def test_voronoi_cells_tile_the_bounds(self) -> None:
        rng = np.random.default_rng(11)
        pts = rng.uniform(0.0, 50.0, size=(20, 2))
        tester = VoronoiHitTester(pts[:, 0], pts[:, 1], list(range(20)), (0.0, 0.0, 50.0, 50.0))
        total = sum(_polygon_area(cell) for cell in tester.cells if cell is not None)
        self.assertAlmostEqual(total, 2500.0, places=6)

    def test_voronoi_two_points_split_halfway(self) -> None:
        tester = VoronoiHitTester([0.0, 100.0], [50.0, 50.0], ["left", "right"], (0.0, 0.0, 100.0, 100.0))
        cell = tester.cell(0)
        assert cell is not None
        self.assertAlmostEqual(float(cell[:, 0].max()), 50.0)
        self.assertEqual(tester.hit(49.0, 10.0), "left")
        self.assertEqual(tester.hit(51.0, 90.0), "right")

    def test_voronoi_coincident_points_resolve_to_first(self) -> None:
        tester = VoronoiHitTester([10.0, 10.0, 50.0], [10.0, 10.0, 50.0], ["a", "b", "c"], (0.0, 0.0, 60.0, 60.0))
        self.assertIsNone(tester.cell(1))
        self.assertEqual(tester.hit(11.0, 11.0), "a")
        self.assertEqual(tester.hit(49.0, 52.0), "c")

    def test_voronoi_outside_bounds_is_no_hit(self) -> None:
        tester = VoronoiHitTester([10.0], [10.0], ["only"], (0.0, 0.0, 20.0, 20.0))
        self.assertEqual(tester.hit(19.0, 19.0), "only")
        self.assertIsNone(tester.hit(21.0, 5.0))

    def test_voronoi_handles_collinear_seeds(self) -> None:
        tester = VoronoiHitTester([10.0, 20.0, 30.0, 40.0], [5.0, 5.0, 5.0, 5.0], list("abcd"), (0.0, 0.0, 50.0, 10.0))
        self.assertEqual(tester.hit(26.0, 9.0), "c")
        self.assertEqual(tester.hit(0.0, 0.0), "a")

    def test_region_tester_respects_holes(self) -> None:
        outer = np.asarray([(0, 0), (10, 0), (10, 10), (0, 10)], dtype=float)
        hole = np.asarray([(3, 3), (7, 3), (7, 7), (3, 7)], dtype=float)
        tester = RegionHitTester([("donut", [outer, hole])])
        self.assertEqual(tester.hit(1.0, 1.0), "donut")
        self.assertIsNone(tester.hit(5.0, 5.0))
        self.assertIsNone(tester.hit(12.0, 5.0))

    def test_circle_tester_prefers_topmost(self) -> None:
        tester = CircleHitTester(["a", "b"], [0.0, 5.0], [0.0, 0.0], [10.0, 10.0])
        self.assertEqual(tester.hit(3.0, 0.0), "b")
        self.assertEqual(tester.hit(-8.0, 0.0), "a")
        self.assertIsNone(tester.hit(50.0, 50.0))

    def test_tessellation_cache_rebuilds_on_new_data_or_size(self) -> None:
        cache = TessellationCache()
        data = (1, 2, 3)

        def build() -> VoronoiHitTester:
            return VoronoiHitTester([1.0], [1.0], ["x"], (0.0, 0.0, 10.0, 10.0))

        first = cache.get(data, (100.0, 100.0), build)
        self.assertIs(cache.get(data, (100.0, 100.0), build), first)
        self.assertEqual(cache.builds, 1)
        cache.get(data, (120.0, 100.0), build)
        self.assertEqual(cache.builds, 2)
        cache.get(tuple(list(data)), (120.0, 100.0), build)
        self.assertEqual(cache.builds, 3)
        cache.invalidate()
        cache.get(data, (120.0, 100.0), build)
        self.assertEqual(cache.builds, 4)


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import unittest

from quantchart.geometry import (
    Circle,
    HitRegion,
    RenderResult,
    cumulative_sums,
    flatten_commands,
    monotone_x_path,
    polyline_commands,
    stacked_segments,
    truncate_label,
    value_axis,
    value_label_visible,
)
from quantchart.scales import LinearScale, build_value_scale
from quantchart.theme import DEFAULT_THEME


class GeometryTests(unittest.TestCase):
    def test_absent_component_adds_nothing_to_the_stack(self) -> None:
        self.assertEqual(cumulative_sums([10.0, None, 5.0]), [10.0, 10.0, 15.0])

    def test_stacked_segments_track_running_baseline(self) -> None:
        scale = LinearScale(domain=(0.0, 20.0), range=(100.0, 0.0))
        segments = stacked_segments([10.0, None, 5.0], scale)
        self.assertEqual([s.end for s in segments], [10.0, 10.0, 15.0])
        self.assertAlmostEqual(segments[0].top, 50.0)
        self.assertAlmostEqual(segments[0].height, 50.0)
        self.assertFalse(segments[1].present)
        self.assertEqual(segments[1].height, 0.0)
        self.assertAlmostEqual(segments[2].top, 25.0)
        self.assertAlmostEqual(segments[2].height, 25.0)

    def test_value_label_threshold_is_strict(self) -> None:
        self.assertFalse(value_label_visible(20.0))
        self.assertTrue(value_label_visible(21.0))
        self.assertTrue(value_label_visible(-25.0))
        self.assertFalse(value_label_visible(float("nan")))

    def test_truncate_label_appends_ellipsis_past_budget(self) -> None:
        self.assertEqual(truncate_label("Netherlands", 5), "Nethe...")
        self.assertEqual(truncate_label("UK", 5), "UK")
        self.assertEqual(truncate_label(None, 3), "")

    def test_value_axis_always_draws_zero_baseline(self) -> None:
        scale = build_value_scale([10.0], 100.0)
        prims = value_axis(scale, extent=200.0, theme=DEFAULT_THEME)
        grid = [p for p in prims if p.role == "grid"]
        baseline = [p for p in prims if p.role == "baseline"]
        self.assertEqual(len(grid), 5)
        self.assertEqual(len(baseline), 1)
        self.assertAlmostEqual(baseline[0].y1, 100.0)
        self.assertTrue(all(p.dash == (4.0, 8.0) for p in grid))

        bare = value_axis(scale, extent=200.0, theme=DEFAULT_THEME, show_ticks=False)
        self.assertEqual([p.role for p in bare], ["baseline", "tick"])

    def test_monotone_path_degenerate_inputs(self) -> None:
        self.assertEqual(monotone_x_path([]), ())
        self.assertEqual(monotone_x_path([(1.0, 2.0)]), (("M", 1.0, 2.0),))
        self.assertEqual(monotone_x_path([(0.0, 0.0), (4.0, 2.0)]), (("M", 0.0, 0.0), ("L", 4.0, 2.0)))

    def test_monotone_path_straight_line_stays_straight(self) -> None:
        commands = monotone_x_path([(0.0, 0.0), (3.0, 3.0), (6.0, 6.0)])
        self.assertEqual(commands[0], ("M", 0.0, 0.0))
        for cmd in commands[1:]:
            self.assertEqual(cmd[0], "C")
            _, x1, y1, x2, y2, _, _ = cmd
            self.assertAlmostEqual(x1, y1)
            self.assertAlmostEqual(x2, y2)

    def test_monotone_path_does_not_overshoot(self) -> None:
        points = [(0.0, 0.0), (1.0, 10.0), (2.0, 10.0), (3.0, 0.0)]
        for cmd in monotone_x_path(points)[1:]:
            for y in (cmd[2], cmd[4], cmd[6]):
                self.assertGreaterEqual(y, 0.0)
                self.assertLessEqual(y, 10.0)

    def test_flatten_closed_polyline(self) -> None:
        runs = flatten_commands(polyline_commands([(0.0, 0.0), (1.0, 0.0), (1.0, 1.0)], closed=True))
        self.assertEqual(runs, [[(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 0.0)]])

    def test_flatten_samples_curves_per_subpath(self) -> None:
        commands = (("M", 0.0, 0.0), ("C", 1.0, 0.0, 2.0, 0.0, 3.0, 0.0), ("M", 5.0, 5.0), ("L", 6.0, 6.0))
        runs = flatten_commands(commands, steps=4)
        self.assertEqual(len(runs), 2)
        self.assertEqual(len(runs[0]), 5)
        self.assertEqual(runs[0][-1], (3.0, 0.0))

    def test_hit_region_is_invisible_by_default(self) -> None:
        region = HitRegion(((0.0, 0.0), (1.0, 0.0), (0.0, 1.0)), datum="d")
        self.assertEqual(region.role, "hit")
        self.assertEqual(region.opacity, 0.0)

    def test_render_result_placeholder_and_roles(self) -> None:
        empty = RenderResult.placeholder(100, 50, (10.0, 5.0))
        self.assertTrue(empty.empty)
        self.assertEqual(empty.primitives, ())
        result = RenderResult(width=10, height=10, primitives=(Circle(1.0, 1.0, 1.0, role="mark"),))
        self.assertEqual(len(result.by_role("mark")), 1)
        self.assertEqual(result.by_role("grid"), [])


if __name__ == "__main__":
    unittest.main()

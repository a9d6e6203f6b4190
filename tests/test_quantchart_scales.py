from __future__ import annotations

from datetime import datetime
import math
import unittest

from quantchart.scales import (
    BandScale,
    LinearScale,
    SqrtScale,
    ThresholdScale,
    build_radius_scale,
    build_time_scale,
    build_value_scale,
    clamp_coordinate,
    format_ticks_for_axis,
    format_value,
    generate_nice_ticks,
    time_ticks,
    zero_anchored_extent,
)


class ScaleTests(unittest.TestCase):
    def test_value_scale_is_zero_anchored_and_niced(self) -> None:
        scale = build_value_scale([3.0, 7.0, 10.0], 100.0)
        self.assertEqual(scale.domain, (0.0, 10.0))
        self.assertAlmostEqual(scale(0.0), 100.0)
        self.assertAlmostEqual(scale(10.0), 0.0)
        self.assertAlmostEqual(scale(5.0), 50.0)
        self.assertEqual(scale.ticks(5), [0.0, 2.0, 4.0, 6.0, 8.0, 10.0])

    def test_value_scale_keeps_zero_inside_mixed_sign_domain(self) -> None:
        scale = build_value_scale([-3.0, 7.0], 120.0)
        lo, hi = scale.domain
        self.assertLessEqual(lo, -3.0)
        self.assertGreaterEqual(hi, 7.0)
        self.assertTrue(0.0 <= scale(0.0) <= 120.0)

    def test_positive_only_values_still_include_zero(self) -> None:
        self.assertEqual(zero_anchored_extent([5.0, None, 9.0]), (0.0, 9.0))
        self.assertEqual(zero_anchored_extent([-4.0, -1.0]), (-4.0, 0.0))
        self.assertEqual(zero_anchored_extent([None, float("nan")]), (0.0, 0.0))

    def test_degenerate_domain_maps_to_range_middle(self) -> None:
        scale = build_value_scale([None, None], 80.0)
        self.assertTrue(scale.degenerate)
        self.assertEqual(scale(0.0), 40.0)
        self.assertEqual(scale.ticks(), [0.0])

    def test_non_inverted_scale_grows_rightwards(self) -> None:
        scale = build_value_scale([10.0], 100.0, invert=False)
        self.assertAlmostEqual(scale(0.0), 0.0)
        self.assertAlmostEqual(scale(10.0), 100.0)

    def test_linear_invert_round_trips_pixels(self) -> None:
        scale = LinearScale(domain=(0.0, 10.0), range=(100.0, 0.0))
        self.assertAlmostEqual(scale.invert(50.0), 5.0)
        self.assertAlmostEqual(scale.invert(scale(2.5)), 2.5)

    def test_map_many_matches_scalar_mapping(self) -> None:
        scale = LinearScale(domain=(0.0, 4.0), range=(0.0, 40.0))
        self.assertEqual(scale.map_many([0.0, 1.0, 4.0]).tolist(), [0.0, 10.0, 40.0])

    def test_clamp_coordinate_handles_nan_and_reversed_bounds(self) -> None:
        self.assertEqual(clamp_coordinate(float("nan"), 0.0, 10.0), 0.0)
        self.assertEqual(clamp_coordinate(15.0, 10.0, 0.0), 10.0)
        self.assertEqual(clamp_coordinate(-2.0, 0.0, 10.0), 0.0)

    def test_sqrt_scale_encodes_area(self) -> None:
        scale = SqrtScale(domain=(0.0, 100.0), range=(0.0, 10.0))
        self.assertAlmostEqual(scale(25.0), 5.0)
        self.assertAlmostEqual(scale(100.0), 10.0)

    def test_radius_scale_absent_without_radii(self) -> None:
        self.assertIsNone(build_radius_scale([None, None], 1.0, 5.0))
        scale = build_radius_scale([4.0, 16.0], 1.0, 5.0)
        assert scale is not None
        self.assertAlmostEqual(scale(0.0), 1.0)
        self.assertGreater(scale(16.0), scale(4.0))

    def test_threshold_scale_buckets(self) -> None:
        scale = ThresholdScale(thresholds=(10.0, 20.0), outputs=("low", "mid", "high"))
        self.assertEqual(scale(5.0), "low")
        self.assertEqual(scale(10.0), "mid")
        self.assertEqual(scale(25.0), "high")

    def test_band_scale_positions_and_padding_gaps(self) -> None:
        scale = BandScale(keys=("a", "b", "c", "d"), range=(0.0, 100.0), padding_inner=0.25)
        self.assertAlmostEqual(scale.bandwidth, 20.0)
        self.assertAlmostEqual(scale("b") or 0.0, 100.0 / 3.75)
        self.assertIsNone(scale("z"))
        self.assertEqual(scale.band_at(10.0), 0)
        self.assertIsNone(scale.band_at(22.0))
        self.assertEqual(scale.band_at(30.0), 1)
        self.assertEqual(scale.band_at(100.0), 3)
        self.assertIsNone(scale.band_at(-1.0))

    def test_nice_ticks_are_1_2_5_multiples(self) -> None:
        ticks = generate_nice_ticks(0.0, 1.0, 5)
        self.assertEqual(format_ticks_for_axis(ticks), ["0", "0.2", "0.4", "0.6", "0.8", "1"])
        with self.assertRaises(ValueError):
            generate_nice_ticks(0.0, 1.0, 0)

    def test_large_tick_steps_abbreviate(self) -> None:
        self.assertEqual(format_ticks_for_axis([0.0, 5000.0, 10000.0]), ["0", "5K", "10K"])

    def test_format_value_abbreviations(self) -> None:
        self.assertEqual(format_value(1532000.0), "1.53M")
        self.assertEqual(format_value(1000.0), "1K")
        self.assertEqual(format_value(999.0, prefix="$"), "$999")
        self.assertEqual(format_value(-2500000.0, suffix="%"), "-2.5M%")
        self.assertEqual(format_value(None), "NA")

    def test_yearly_time_ticks(self) -> None:
        ticks = time_ticks(datetime(2000, 1, 1), datetime(2010, 1, 1), 5)
        self.assertEqual([t.year for t in ticks], [2000, 2002, 2004, 2006, 2008, 2010])

    def test_monthly_time_ticks_fall_on_first_of_month(self) -> None:
        ticks = time_ticks(datetime(2020, 1, 15), datetime(2020, 12, 31), 12)
        self.assertEqual(len(ticks), 11)
        self.assertTrue(all(t.day == 1 for t in ticks))
        self.assertEqual(ticks[0], datetime(2020, 2, 1))

    def test_time_scale_maps_dates_linearly(self) -> None:
        scale = build_time_scale([datetime(2020, 1, 1), None, datetime(2020, 1, 11)], 100.0)
        self.assertAlmostEqual(scale(datetime(2020, 1, 6)), 50.0)
        self.assertEqual(scale.invert(0.0), datetime(2020, 1, 1))
        self.assertTrue(math.isclose(scale(datetime(2020, 1, 11)), 100.0))


if __name__ == "__main__":
    unittest.main()

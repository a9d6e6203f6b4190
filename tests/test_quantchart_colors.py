from __future__ import annotations

import unittest

from quantchart.colors import bind_colors, bind_thresholds
from quantchart.errors import ChartConfigError


RED = "#FF0000"
GREEN = "#00FF00"
BLUE = "#0000FF"
GREY = "#D4D6D8"


class ColorBindingTests(unittest.TestCase):
    def test_domain_is_first_seen_keys(self) -> None:
        binding = bind_colors(["b", "a", "b", None], palette=(RED, GREEN), no_data_color=GREY, default_color=BLUE)
        self.assertEqual(binding.domain, ("b", "a"))
        self.assertEqual(binding.color_of("b"), RED)
        self.assertEqual(binding.color_of("a"), GREEN)
        self.assertEqual(binding.color_of(None), GREY)
        self.assertEqual(binding.legend(), (("b", RED), ("a", GREEN)))

    def test_palette_wraps_when_domain_is_longer(self) -> None:
        binding = bind_colors(["x", "y", "z"], palette=(RED, GREEN), no_data_color=GREY, default_color=BLUE)
        self.assertEqual(binding.color_of("z"), RED)

    def test_uncategorized_data_gets_one_constant_color(self) -> None:
        binding = bind_colors([None, None], palette=(RED,), no_data_color=GREY, default_color=BLUE)
        self.assertTrue(binding.constant)
        self.assertEqual(binding.color_of("anything"), BLUE)
        self.assertEqual(binding.legend(), ())
        explicit = bind_colors([None], explicit_colors=(GREEN,), palette=(RED,), no_data_color=GREY, default_color=BLUE)
        self.assertEqual(explicit.color_of(None), GREEN)

    def test_keys_outside_explicit_domain_use_no_data_color(self) -> None:
        with self.assertLogs("quantchart.colors", level="WARNING"):
            binding = bind_colors(
                ["a", "c"], explicit_domain=("a", "b"), palette=(RED, GREEN), no_data_color=GREY, default_color=BLUE
            )
        self.assertEqual(binding.color_of("b"), GREEN)
        self.assertEqual(binding.color_of("c"), GREY)

    def test_threshold_binding_buckets_values(self) -> None:
        binding = bind_thresholds([10, 20], [RED, GREEN, BLUE], no_data_color=GREY)
        self.assertEqual(binding.color_of(5), RED)
        self.assertEqual(binding.color_of(15), GREEN)
        self.assertEqual(binding.color_of(25), BLUE)
        self.assertEqual(binding.color_of(None), GREY)
        self.assertEqual(binding.color_of("n/a"), GREY)
        self.assertEqual([k for k, _ in binding.legend()], ["< 10", "10-20", ">= 20"])
        self.assertEqual(binding.label_of(15), "10-20")
        self.assertIsNone(binding.label_of(None))

    def test_categorical_binding_matches_exact_values(self) -> None:
        binding = bind_thresholds(["A", "B"], [RED, GREEN, BLUE], no_data_color=GREY, categorical=True)
        self.assertEqual(binding.colors, (RED, GREEN))
        self.assertEqual(binding.color_of("B"), GREEN)
        self.assertEqual(binding.color_of("Z"), GREY)
        self.assertEqual(binding.label_of("A"), "A")
        self.assertIsNone(binding.label_of("Z"))

    def test_threshold_binding_validation(self) -> None:
        with self.assertRaisesRegex(ChartConfigError, "ascending"):
            bind_thresholds([20, 10], [RED, GREEN, BLUE], no_data_color=GREY)
        with self.assertRaisesRegex(ChartConfigError, "needs 3 colors"):
            bind_thresholds([10, 20], [RED, GREEN], no_data_color=GREY)
        with self.assertRaisesRegex(ChartConfigError, "at least one"):
            bind_thresholds([], [RED], no_data_color=GREY)


if __name__ == "__main__":
    unittest.main()

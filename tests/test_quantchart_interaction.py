from __future__ import annotations

import unittest
from unittest import mock

from quantchart.config import Margins
from quantchart.errors import ChartConfigError
from quantchart.selection import HighlightState, PointerEvent, opacity_for, reduce_highlight
from quantchart.sizing import UNMEASURED, ResponsiveSizer, Size, plot_area
from quantchart.tooltip import position_tooltip, tooltip_for


class ResponsiveSizerTests(unittest.TestCase):
    def test_explicit_size_needs_no_measurement(self) -> None:
        self.assertEqual(ResponsiveSizer(width=400, height=300).measure(), Size(400, 300))
        self.assertEqual(ResponsiveSizer(width=400, relative_height=0.5).measure(), Size(400, 200))

    def test_unmeasured_until_container_reports(self) -> None:
        sizer = ResponsiveSizer()
        self.assertEqual(sizer.measure(), UNMEASURED)
        self.assertFalse(sizer.measure().measured)
        self.assertTrue(sizer.observe(320.5, 200.0))
        self.assertEqual(sizer.measure(), Size(320, 200))
        self.assertFalse(sizer.observe(320.5, 200.0))

    def test_probe_is_used_and_zero_falls_back(self) -> None:
        probe = mock.Mock(return_value=(500.0, 0.0))
        sizer = ResponsiveSizer(probe, fallback=(620, 480))
        self.assertEqual(sizer.measure(), Size(500, 480))
        probe.assert_called_once_with()
        sizer.measure()
        probe.assert_called_once_with()

    def test_probe_without_layout_stays_unmeasured(self) -> None:
        sizer = ResponsiveSizer(mock.Mock(return_value=None))
        self.assertEqual(sizer.measure(), UNMEASURED)

    def test_invalid_dimensions(self) -> None:
        with self.assertRaisesRegex(ChartConfigError, "width"):
            ResponsiveSizer(width=0)
        with self.assertRaisesRegex(ChartConfigError, "relative_height"):
            ResponsiveSizer(relative_height=-1.0)

    def test_plot_area_never_negative(self) -> None:
        margins = Margins(top=20, right=20, bottom=25, left=20)
        self.assertEqual(plot_area(Size(100, 50), margins), (60.0, 5.0))
        self.assertEqual(plot_area(Size(10, 10), margins), (0.0, 0.0))


class HighlightReducerTests(unittest.TestCase):
    def test_legend_click_toggles_selection(self) -> None:
        state = reduce_highlight(HighlightState(), PointerEvent(kind="legend_click", category="A"))
        self.assertEqual(state.selected_category, "A")
        state = reduce_highlight(state, PointerEvent(kind="legend_click", category="B"))
        self.assertEqual(state.selected_category, "B")
        state = reduce_highlight(state, PointerEvent(kind="legend_click", category="B"))
        self.assertIsNone(state.selected_category)
        state = reduce_highlight(HighlightState(selected_category="A"), PointerEvent(kind="legend_clear"))
        self.assertIsNone(state.selected_category)

    def test_move_hits_in_plot_coordinates(self) -> None:
        tester = mock.Mock()
        tester.hit.return_value = "datum"
        event = PointerEvent(kind="move", x=60.0, y=30.0, client_x=600.0, client_y=300.0)
        state = reduce_highlight(HighlightState(), event, tester, (50.0, 20.0, 100.0, 100.0))
        tester.hit.assert_called_once_with(10.0, 10.0)
        self.assertEqual(state.hovered, "datum")
        self.assertEqual(state.pointer, (600.0, 300.0))
        self.assertEqual(state.local_pointer, (60.0, 30.0))
        self.assertIsNone(state.viewport)

        event = PointerEvent(kind="move", x=60.0, y=30.0, client_x=600.0, client_y=300.0, viewport=(1200.0, 900.0))
        state = reduce_highlight(state, event, tester, (50.0, 20.0, 100.0, 100.0))
        self.assertEqual(state.viewport, (1200.0, 900.0))
        state = reduce_highlight(state, PointerEvent(kind="leave"))
        self.assertEqual(state, HighlightState())

    def test_move_outside_plot_or_miss_clears_hover(self) -> None:
        tester = mock.Mock()
        tester.hit.return_value = "datum"
        hovered = HighlightState(hovered="old", pointer=(1.0, 1.0), selected_category="A")
        state = reduce_highlight(hovered, PointerEvent(kind="move", x=10.0, y=10.0), tester, (50.0, 20.0, 100.0, 100.0))
        self.assertIsNone(state.hovered)
        self.assertEqual(state.selected_category, "A")
        tester.hit.assert_not_called()
        tester.hit.return_value = None
        state = reduce_highlight(hovered, PointerEvent(kind="move", x=60.0, y=30.0), tester, (50.0, 20.0, 100.0, 100.0))
        self.assertIsNone(state.pointer)

    def test_leave_keeps_legend_selection(self) -> None:
        state = reduce_highlight(HighlightState(selected_category="A", hovered="d", pointer=(1.0, 2.0)), PointerEvent(kind="leave"))
        self.assertEqual(state, HighlightState(selected_category="A"))

    def test_unknown_event_kind(self) -> None:
        with self.assertRaisesRegex(ValueError, "unknown pointer event kind"):
            reduce_highlight(HighlightState(), PointerEvent(kind="wheel"))  # type: ignore[arg-type]

    def test_hover_dimming_takes_precedence_over_selection(self) -> None:
        state = HighlightState(selected_category="A", hovered="d")
        self.assertEqual(opacity_for(state, category="A"), 0.3)
        self.assertEqual(opacity_for(state, category="B", is_hovered=True), 1.0)

    def test_selection_then_highlighted_labels(self) -> None:
        selected = HighlightState(selected_category="A")
        self.assertEqual(opacity_for(selected, category="A"), 1.0)
        self.assertEqual(opacity_for(selected, category="B", dim_opacity=0.1), 0.1)
        idle = HighlightState()
        self.assertEqual(opacity_for(idle, label="x", highlighted_labels=("x",)), 1.0)
        self.assertEqual(opacity_for(idle, label="y", highlighted_labels=("x",)), 0.3)
        self.assertEqual(opacity_for(idle, label="y"), 1.0)

    def test_hover_matches_by_label(self) -> None:
        datum = mock.Mock(label="France")
        state = HighlightState(hovered=datum)
        self.assertEqual(state.hovered_label, "France")
        self.assertEqual(opacity_for(state, label="France"), 1.0)


class TooltipTests(unittest.TestCase):
    def test_quadrant_anchoring(self) -> None:
        near = position_tooltip(10.0, 10.0, 100.0, 100.0)
        self.assertEqual((near.v_align, near.h_align), ("bottom", "right"))
        self.assertEqual((near.x, near.y), (30.0, 50.0))
        far = position_tooltip(90.0, 90.0, 100.0, 100.0)
        self.assertEqual((far.v_align, far.h_align), ("top", "left"))
        self.assertEqual((far.x, far.y), (70.0, 50.0))
        middle = position_tooltip(50.0, 50.0, 100.0, 100.0, offset_x=5.0, offset_y=5.0)
        self.assertEqual((middle.v_align, middle.h_align), ("bottom", "right"))
        self.assertEqual((middle.x, middle.y), (55.0, 55.0))

    def test_tooltip_content_only_while_hovering(self) -> None:
        self.assertIsNone(tooltip_for(None, (1.0, 1.0), (100.0, 100.0), str))
        self.assertIsNone(tooltip_for("d", (1.0, 1.0), (100.0, 100.0), None))
        anchor, content = tooltip_for("d", (80.0, 10.0), (100.0, 100.0), lambda d: f"<b>{d}</b>")
        self.assertEqual(content, "<b>d</b>")
        self.assertEqual(anchor.h_align, "left")


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

from datetime import date, datetime
import os
import time
import unittest
from unittest import mock

import numpy as np

from quantchart.data import CompositePoint, DataPoint, coerce_composites, coerce_geo, coerce_points
from quantchart.errors import ChartDataError

try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]


class DataCoercionTests(unittest.TestCase):
    def test_mapping_records_use_alias_keys(self) -> None:
        points = coerce_points([{"value": "3", "date": "2020", "color": "A", "data": {"id": 1}}], date_format="%Y")
        self.assertEqual(points[0].y, 3.0)
        self.assertEqual(points[0].x, datetime(2020, 1, 1))
        self.assertEqual(points[0].category, "A")
        self.assertEqual(points[0].payload, {"id": 1})

    def test_nan_and_none_both_mean_absent(self) -> None:
        points = coerce_points([{"y": float("nan")}, {"y": None}])
        self.assertIsNone(points[0].y)
        self.assertIsNone(points[1].y)

    def test_dataclass_records_are_normalized(self) -> None:
        point = coerce_points([DataPoint(y=2, x=4, category=7)])[0]
        self.assertEqual(point.x, 4.0)
        self.assertIsInstance(point.x, float)
        self.assertEqual(point.category, "7")
        self.assertEqual(coerce_points([{"x": date(2021, 5, 1), "y": 1}])[0].x, datetime(2021, 5, 1))

    @unittest.skipUnless(hasattr(time, "tzset"), "needs POSIX tzset")
    def test_datetime64_ignores_host_timezone(self) -> None:
        with mock.patch.dict(os.environ, {"TZ": "America/New_York"}):
            time.tzset()
            try:
                points = coerce_points(
                    [{"x": np.datetime64("2020-01-01"), "y": 1}, {"x": np.datetime64("NaT"), "y": 2}],
                    date_format="%Y",
                )
                plain = coerce_points([{"x": np.datetime64("2021-06-30T12:00"), "y": 3}])
            finally:
                time.tzset()
        self.assertEqual(points[0].x, datetime(2020, 1, 1))
        self.assertEqual(points[0].x.year, 2020)
        self.assertIsNone(points[1].x)
        self.assertEqual(plain[0].x, datetime(2021, 6, 30, 12, 0))

    def test_bad_inputs_raise_data_errors(self) -> None:
        with self.assertRaisesRegex(ChartDataError, "non-numeric value at index 1"):
            coerce_points([{"y": 1}, {"y": "abc"}])
        with self.assertRaisesRegex(ChartDataError, "unsupported data input"):
            coerce_points("abc")
        with self.assertRaisesRegex(ChartDataError, "cannot parse date"):
            coerce_points([{"x": "May", "y": 1}], date_format="%Y")
        self.assertEqual(coerce_points(None), ())

    def test_composites_accept_value_lists(self) -> None:
        rows = coerce_composites([{"values": [1, None, "3"], "x": "2001", "label": "r1"}], date_format="%Y")
        self.assertEqual(rows[0].values, (1.0, None, 3.0))
        self.assertEqual(rows[0].x, datetime(2001, 1, 1))
        self.assertEqual(rows[0].label, "r1")
        # A list under `y` is the component list, with `x` still read as the position.
        rows = coerce_composites([{"y": [1, 2], "x": 5}])
        self.assertEqual(rows[0].values, (1.0, 2.0))
        self.assertEqual(rows[0].x, 5.0)
        self.assertEqual(coerce_composites([CompositePoint(values=(1,))])[0].values, (1.0,))
        with self.assertRaisesRegex(ChartDataError, "no component value list"):
            coerce_composites([{"y": 3}])

    def test_geo_records(self) -> None:
        data = coerce_geo([{"countryCode": "FR", "value": 3}, {"id": "DE", "value": "high", "long": 5, "lat": 50}])
        self.assertEqual(data[0].feature_id, "FR")
        self.assertEqual(data[0].value, 3.0)
        self.assertEqual(data[1].value, "high")
        self.assertEqual((data[1].lon, data[1].lat), (5.0, 50.0))

    @unittest.skipUnless(pd is not None, "pandas not installed")
    def test_dataframe_rows_with_missing_values(self) -> None:
        frame = pd.DataFrame({"x": [1.0, 2.0], "y": [4.0, float("nan")], "category": ["a", None]})
        points = coerce_points(frame)
        self.assertEqual(points[0].y, 4.0)
        self.assertIsNone(points[1].y)
        self.assertIsNone(points[1].category)


if __name__ == "__main__":
    unittest.main()

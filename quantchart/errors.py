from __future__ import annotations


class ChartError(Exception):
    """Base error for chart construction failures."""


class ChartDataError(ChartError, ValueError):
    """Input records that cannot be coerced into chart data."""


class ChartConfigError(ChartError, ValueError):
    """Invalid option or violated structural precondition between inputs."""

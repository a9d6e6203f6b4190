from quantchart.colors import ColorBinding, ThresholdBinding, bind_colors, bind_thresholds
from quantchart.config import ChartConfig, Margins, resolve_config
from quantchart.data import CompositePoint, DataPoint, GeoDatum, ReferenceMarker
from quantchart.errors import ChartConfigError, ChartDataError, ChartError
from quantchart.frame import ChartFrame
from quantchart.geometry import RenderResult
from quantchart.selection import HighlightState, PointerEvent, opacity_for, reduce_highlight
from quantchart.sizing import ResponsiveSizer, Size
from quantchart.theme import DEFAULT_THEME, Theme, resolve_theme
from quantchart.tooltip import TooltipAnchor, position_tooltip

__all__ = [
    "ChartConfig",
    "ChartConfigError",
    "ChartDataError",
    "ChartError",
    "ChartFrame",
    "ColorBinding",
    "CompositePoint",
    "DEFAULT_THEME",
    "DataPoint",
    "GeoDatum",
    "HighlightState",
    "Margins",
    "PointerEvent",
    "ReferenceMarker",
    "RenderResult",
    "ResponsiveSizer",
    "Size",
    "Theme",
    "ThresholdBinding",
    "TooltipAnchor",
    "bind_colors",
    "bind_thresholds",
    "opacity_for",
    "position_tooltip",
    "reduce_highlight",
    "resolve_config",
    "resolve_theme",
]

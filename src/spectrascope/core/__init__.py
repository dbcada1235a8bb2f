"""Core signal shaping and color modules."""

from spectrascope.core.formatting import format_time, volume_luminance
from spectrascope.core.shaper import SignalShaper, shape_bars, shape_circular, smooth
from spectrascope.core.themes import THEMES, ColorTheme, color_for, dynamic_color, get_theme

__all__ = [
    "SignalShaper",
    "shape_bars",
    "shape_circular",
    "smooth",
    "THEMES",
    "ColorTheme",
    "color_for",
    "dynamic_color",
    "get_theme",
    "format_time",
    "volume_luminance",
]

"""Real-time audio-reactive spectrum visualizer."""

from spectrascope.audio.driver import AnalysisDriver
from spectrascope.audio.media import MediaElement
from spectrascope.core.shaper import SignalShaper
from spectrascope.core.themes import THEMES, get_theme
from spectrascope.pipeline import DrawMode, PipelineState, RenderPipeline

__version__ = "0.1.0"
__all__ = [
    "AnalysisDriver",
    "MediaElement",
    "SignalShaper",
    "THEMES",
    "get_theme",
    "DrawMode",
    "PipelineState",
    "RenderPipeline",
]

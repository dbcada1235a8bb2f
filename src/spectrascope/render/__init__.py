"""Draw commands, layout renderers, canvas backends and frame scheduling."""

from spectrascope.render.canvas import Canvas, PygameBackend, RecordingBackend
from spectrascope.render.renderers import (
    BackgroundEnergy,
    render_background,
    render_bars,
    render_circular,
    render_placeholder,
    render_wave,
)
from spectrascope.render.scheduler import FrameTask, ManualScheduler, PygameScheduler

__all__ = [
    "Canvas",
    "PygameBackend",
    "RecordingBackend",
    "BackgroundEnergy",
    "render_background",
    "render_bars",
    "render_circular",
    "render_placeholder",
    "render_wave",
    "FrameTask",
    "ManualScheduler",
    "PygameScheduler",
]

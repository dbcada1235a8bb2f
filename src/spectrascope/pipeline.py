"""
Main render pipeline.

Orchestrates the per-frame flow from analyser buffers to a drawn canvas:
sample -> shape -> color -> draw, once per display refresh.
"""

import enum
import sys
import time
from dataclasses import dataclass, replace
from typing import Callable

import numpy as np

from spectrascope.audio.driver import AnalysisDriver
from spectrascope.audio.media import MediaElement
from spectrascope.core.shaper import DEFAULT_BARS_SENSITIVITY, DEFAULT_CIRCULAR_SENSITIVITY
from spectrascope.core.themes import DEFAULT_THEME, get_theme
from spectrascope.render.canvas import Canvas
from spectrascope.render.commands import Frame
from spectrascope.render.renderers import (
    BackgroundEnergy,
    render_background,
    render_bars,
    render_circular,
    render_placeholder,
    render_wave,
)
from spectrascope.render.scheduler import FrameScheduler, ManualScheduler


class DrawMode(str, enum.Enum):
    """Geometric layout drawn each frame."""

    BARS = "bars"
    CIRCULAR = "circular"
    WAVE = "wave"


DEFAULT_SENSITIVITY = {
    DrawMode.BARS: DEFAULT_BARS_SENSITIVITY,
    DrawMode.CIRCULAR: DEFAULT_CIRCULAR_SENSITIVITY,
    DrawMode.WAVE: DEFAULT_BARS_SENSITIVITY,
}


@dataclass
class PipelineState:
    """
    Inputs that shape a frame, set by external controls.

    ``sensitivity=None`` uses the active mode's default.
    """

    mode: DrawMode = DrawMode.BARS
    theme: str = DEFAULT_THEME
    sensitivity: float | None = None
    volume: float = 0.7

    def effective_sensitivity(self) -> float:
        if self.sensitivity is None:
            return DEFAULT_SENSITIVITY[DrawMode(self.mode)]
        return self.sensitivity


class RenderPipeline:
    """
    Per-frame orchestrator.

    Holds the explicit pipeline state, the canvas and the frame scheduler.
    ``tick()`` draws one frame from the buffers it is handed and never
    mutates them.
    """

    def __init__(
        self,
        canvas: Canvas,
        driver: AnalysisDriver | None = None,
        scheduler: FrameScheduler | None = None,
        state: PipelineState | None = None,
        background: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the pipeline.

        Args:
            canvas: Target surface.
            driver: Source of buffers and playback state for the frame loop.
            scheduler: Frame scheduler (defaults to a manual one).
            state: Initial mode/theme/sensitivity/volume.
            background: Draw the energy-reactive backdrop under each frame.
            clock: Wall-clock seconds for animation when ``tick`` gets no time.
        """
        self.canvas = canvas
        self.driver = driver
        self.scheduler = scheduler or ManualScheduler()
        self.state = state or PipelineState()
        self.background = BackgroundEnergy() if background else None
        self.clock = clock
        self.overlays: list[Callable[[PipelineState, float], list]] = []
        self.last_frame: Frame | None = None
        self._stopped = False

        get_theme(self.state.theme)
        self.state.mode = DrawMode(self.state.mode)

    # -- external setters ------------------------------------------------------

    def set_mode(self, mode: DrawMode | str) -> None:
        """Switch layout; takes effect on the next tick."""
        self.state.mode = DrawMode(mode)

    def set_theme(self, theme_id: str) -> None:
        self.state.theme = get_theme(theme_id).id

    def set_sensitivity(self, sensitivity: float | None) -> None:
        self.state.sensitivity = None if sensitivity is None else max(0.0, float(sensitivity))

    def set_volume(self, volume: float) -> None:
        self.state.volume = min(max(float(volume), 0.0), 1.0)

    def add_overlay(self, overlay: Callable[[PipelineState, float], list]) -> None:
        """Register ``overlay(state, now) -> commands`` drawn on top of each frame."""
        self.overlays.append(overlay)

    # -- frame building --------------------------------------------------------

    def build_frame(
        self,
        freq: np.ndarray,
        time_data: np.ndarray,
        state: PipelineState,
        width: float,
        height: float,
        now: float,
    ) -> Frame:
        """
        Pure frame construction: buffers + state + geometry -> draw commands.

        An empty or silent (all-zero) frequency buffer draws the placeholder.
        A zero-sized canvas draws nothing.
        """
        if width <= 0 or height <= 0:
            return Frame()

        theme = get_theme(state.theme)
        volume = min(max(state.volume, 0.0), 1.0)
        sensitivity = state.effective_sensitivity()
        frame = Frame()

        if self.background is not None:
            is_playing = self.driver.is_playing if self.driver is not None else False
            energy = self.background.update(freq)
            frame.commands.extend(render_background(energy, is_playing, width, height))

        if len(freq) == 0 or not np.any(freq):
            frame.placeholder = True
            frame.commands.extend(render_placeholder(theme, width, height, now))
        elif state.mode == DrawMode.BARS:
            frame.commands.extend(render_bars(freq, theme, width, height, sensitivity, volume))
        elif state.mode == DrawMode.CIRCULAR:
            frame.commands.extend(
                render_circular(freq, theme, width, height, now, sensitivity, volume)
            )
        else:
            frame.commands.extend(render_wave(time_data, theme, width, height, sensitivity, volume))

        for overlay in self.overlays:
            frame.commands.extend(overlay(state, now))

        return frame

    def tick(
        self,
        freq: np.ndarray,
        time_data: np.ndarray,
        state: PipelineState | None = None,
        now: float | None = None,
    ) -> Frame | None:
        """
        Draw one frame.

        The state is snapshotted up front so setters called mid-frame only
        apply from the next tick.

        Returns:
            The drawn frame, or None once the pipeline is stopped.
        """
        if self._stopped or self.canvas.detached:
            return None

        snapshot = replace(state or self.state)
        if now is None:
            now = self.clock()
        width, height = self.canvas.client_size

        self.canvas.begin_frame()
        frame = self.build_frame(freq, time_data, snapshot, width, height, now)
        self.canvas.draw(frame.commands)
        self.canvas.end_frame()

        self.last_frame = frame
        return frame

    # -- loop --------------------------------------------------------------------

    def attach(self, element: MediaElement, fft_size: int = 1024) -> bool:
        """
        Connect the driver to a media element.

        Graph-setup errors are reported and re-raised; the loop keeps drawing
        the placeholder either way.
        """
        if self.driver is None:
            self.driver = AnalysisDriver()
        try:
            self.driver.initialize(element, fft_size)
        except Exception as e:
            print(f"Audio graph setup failed: {e}", file=sys.stderr)
            raise
        return self.driver.initialized

    def _on_frame(self, now: float) -> None:
        if self.driver is not None:
            freq, time_data = self.driver.sample()
            state = replace(self.state, volume=self.driver.volume)
        else:
            freq = time_data = np.zeros(0, dtype=np.uint8)
            state = self.state
        self.tick(freq, time_data, state, now)

    def start(self):
        """Start the frame loop on the scheduler and return its task."""
        self._stopped = False
        return self.scheduler.start(self._on_frame)

    def stop(self) -> None:
        """Cancel the next tick and release the audio graph. Idempotent."""
        self._stopped = True
        self.scheduler.stop()
        if self.driver is not None:
            self.driver.teardown()

    def resize(self, client_width: int, client_height: int, device_pixel_ratio: float | None = None) -> None:
        """Resync the canvas backing store; touches no buffers."""
        self.canvas.resize(client_width, client_height, device_pixel_ratio)

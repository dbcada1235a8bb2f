"""
Visualizer application.

Wires a media element, the analysis driver and the render pipeline to a
pygame window with keyboard transport controls, or renders a fixed number
of frames offscreen for ``--headless`` runs.
"""

import time
from functools import partial
from pathlib import Path
from typing import Union

import pygame

from spectrascope.audio.driver import AnalysisDriver
from spectrascope.audio.graph import AudioContext, ClockSink
from spectrascope.audio.media import InvalidAudioFile, MediaElement
from spectrascope.config import VisualizerConfig
from spectrascope.core.formatting import format_time, volume_luminance
from spectrascope.core.themes import HSL, RGBA, get_theme, theme_ids
from spectrascope.pipeline import DrawMode, PipelineState, RenderPipeline
from spectrascope.render.canvas import Canvas, PygameBackend, RecordingBackend
from spectrascope.render.commands import Rect, Text
from spectrascope.render.scheduler import ManualScheduler, PygameScheduler

SEEK_STEP = 5.0
VOLUME_STEP = 0.1

MODE_KEYS = {
    pygame.K_1: DrawMode.BARS,
    pygame.K_2: DrawMode.CIRCULAR,
    pygame.K_3: DrawMode.WAVE,
}


def _initial_state(config: VisualizerConfig) -> PipelineState:
    return PipelineState(
        mode=DrawMode(config.mode),
        theme=config.theme,
        sensitivity=config.sensitivity,
        volume=config.volume,
    )


def _make_driver(config: VisualizerConfig, context_factory=AudioContext) -> AnalysisDriver:
    return AnalysisDriver(
        context_factory=context_factory,
        smoothing_time_constant=config.smoothing_time_constant,
        min_decibels=config.min_decibels,
        max_decibels=config.max_decibels,
    )


class TransportHud:
    """Overlay with the track title, time label, mode/theme and a volume meter."""

    def __init__(self, pipeline: RenderPipeline, element: MediaElement):
        self.pipeline = pipeline
        self.element = element

    def __call__(self, state: PipelineState, now: float) -> list:
        width, height = self.pipeline.canvas.client_size
        driver = self.pipeline.driver
        current = driver.current_time if driver is not None else 0.0
        duration = driver.duration if driver is not None else float("nan")
        volume = driver.volume if driver is not None else state.volume

        text_color = RGBA(255, 255, 255, 0.8)
        commands = [
            Text(f"{format_time(current)} / {format_time(duration)}", 16, height - 20,
                 text_color, size=14, align="left"),
            Text(f"{DrawMode(state.mode).value}  |  {get_theme(state.theme).name}",
                 width - 16, 20, RGBA(255, 255, 255, 0.6), size=12, align="right"),
        ]
        if self.element.title:
            commands.append(Text(self.element.title, 16, 20, text_color, size=16, align="left"))

        meter_width = 80.0
        lum = volume_luminance(volume)
        commands.append(Rect(width - 16 - meter_width, height - 24, meter_width, 6,
                             RGBA(255, 255, 255, 0.15)))
        if volume > 0:
            commands.append(Rect(width - 16 - meter_width, height - 24, meter_width * volume, 6,
                                 HSL(210, 80, 60 * lum)))
        return commands


class VisualizerApp:
    """Interactive pygame window around the render pipeline."""

    def __init__(self, config: VisualizerConfig, audio_path: Union[str, Path, None] = None):
        self.config = config.validate()
        self.audio_path = Path(audio_path) if audio_path is not None else None

        self.element = MediaElement(volume=config.volume)
        self.scheduler = PygameScheduler(fps=config.fps)
        self.backend = PygameBackend(glow_enabled=config.glow_enabled)
        self.canvas: Canvas | None = None
        self.pipeline: RenderPipeline | None = None

    def _open_window(self) -> None:
        cfg = self.config
        pygame.init()
        pygame.display.set_caption("spectrascope")
        screen = pygame.display.set_mode(
            (int(cfg.width * cfg.pixel_ratio), int(cfg.height * cfg.pixel_ratio)),
            pygame.RESIZABLE,
        )
        self.backend.bind(screen)
        self.canvas = Canvas(self.backend, cfg.width, cfg.height, cfg.pixel_ratio)

    def setup(self) -> RenderPipeline:
        """Open the window, build the pipeline and attach the audio graph."""
        self._open_window()
        self.pipeline = RenderPipeline(
            self.canvas,
            driver=_make_driver(self.config),
            scheduler=self.scheduler,
            state=_initial_state(self.config),
            background=self.config.background,
        )
        if self.config.show_hud:
            self.pipeline.add_overlay(TransportHud(self.pipeline, self.element))
        self.scheduler.add_event_handler(self.handle_event)

        # Attach before loading: the graph is built on loadedmetadata.
        self.pipeline.attach(self.element, self.config.fft_size)
        if self.audio_path is not None:
            print(f"Loading audio: {self.audio_path}")
            self.element.load(self.audio_path)
            print(f"  Duration: {format_time(self.element.duration)}")
        return self.pipeline

    def handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.VIDEORESIZE:
            self.backend.bind(pygame.display.get_surface())
            dpr = self.canvas.device_pixel_ratio
            self.pipeline.resize(int(event.w / dpr), int(event.h / dpr))
        elif event.type == pygame.KEYDOWN:
            self.handle_key(event.key)

    def handle_key(self, key: int) -> None:
        element = self.element
        if key == pygame.K_SPACE:
            element.toggle_play()
        elif key == pygame.K_LEFT:
            element.seek(element.current_time - SEEK_STEP)
        elif key == pygame.K_RIGHT:
            element.seek(element.current_time + SEEK_STEP)
        elif key == pygame.K_UP:
            element.volume = element.volume + VOLUME_STEP
        elif key == pygame.K_DOWN:
            element.volume = element.volume - VOLUME_STEP
        elif key == pygame.K_m:
            element.toggle_mute()
        elif key in MODE_KEYS:
            self.pipeline.set_mode(MODE_KEYS[key])
        elif key == pygame.K_t:
            ids = theme_ids()
            current = ids.index(self.pipeline.state.theme)
            self.pipeline.set_theme(ids[(current + 1) % len(ids)])
        elif key == pygame.K_ESCAPE:
            self.pipeline.stop()

    def run(self) -> None:
        """Open the window and block until it is closed."""
        if self.pipeline is None:
            try:
                self.setup()
            except InvalidAudioFile:
                pygame.quit()
                raise
        if self.audio_path is not None:
            self.element.play()
        self.pipeline.start()
        try:
            self.scheduler.run()
        finally:
            self.pipeline.stop()
            self.canvas.detach()
            pygame.quit()


def run_headless(
    config: VisualizerConfig,
    audio_path: Union[str, Path, None] = None,
    frames: int = 120,
    snapshot: Union[str, Path, None] = None,
    element: MediaElement | None = None,
) -> RenderPipeline:
    """
    Render a fixed number of frames without a window or audio device.

    Audio is pulled by a clock sink driven by the manual scheduler's clock,
    so each frame advances playback by exactly ``1 / fps`` seconds.

    Args:
        config: Visualizer settings.
        audio_path: Audio file to decode (ignored when ``element`` is given).
        frames: Number of frames to draw.
        snapshot: Save the last frame here as a PNG.
        element: Preloaded media element.

    Returns:
        The stopped pipeline; ``last_frame`` holds the final draw commands.
    """
    config.validate()
    scheduler = ManualScheduler(fps=config.fps)
    context_factory = partial(
        AudioContext, sink_factory=lambda ctx: ClockSink(ctx, clock=scheduler.now)
    )

    if snapshot is not None:
        backend = PygameBackend(glow_enabled=config.glow_enabled)
    else:
        backend = RecordingBackend()
    canvas = Canvas(backend, config.width, config.height, config.pixel_ratio)

    pipeline = RenderPipeline(
        canvas,
        driver=_make_driver(config, context_factory),
        scheduler=scheduler,
        state=_initial_state(config),
        background=config.background,
        clock=scheduler.now,
    )

    if element is None:
        element = MediaElement(volume=config.volume)
        if audio_path is not None:
            element.load(audio_path)
    if config.show_hud:
        pipeline.add_overlay(TransportHud(pipeline, element))

    pipeline.attach(element, config.fft_size)
    element.play()

    t0 = time.time()
    pipeline.start()
    drawn = scheduler.advance(frames)
    elapsed = time.time() - t0
    print(f"Rendered {drawn} frames at {canvas.width}x{canvas.height} in {elapsed:.2f}s")

    if snapshot is not None:
        path = backend.save_png(snapshot)
        print(f"  Snapshot: {path}")

    pipeline.stop()
    return pipeline

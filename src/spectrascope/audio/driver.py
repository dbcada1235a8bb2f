"""
Analysis driver.

Owns the audio graph attached to a media element and samples fresh
frequency/time-domain buffers once per animation tick.
"""

import sys
from typing import Callable

import numpy as np

from spectrascope.audio.graph import (
    AnalyserNode,
    AudioContext,
    GraphAlreadyConnected,
    MediaElementSourceNode,
    validate_fft_size,
)
from spectrascope.audio.media import HAVE_METADATA, MediaElement, PlaybackState

_EMPTY = np.zeros(0, dtype=np.uint8)


class AnalysisDriver:
    """
    Samples a playing media element through an analyser node.

    The frequency and time buffers are allocated once per graph (sized to the
    analyser's bin count) and refilled in place by ``sample()``. Consumers get
    references, valid until the next tick.
    """

    def __init__(
        self,
        context_factory: Callable[..., AudioContext] = AudioContext,
        smoothing_time_constant: float = 0.8,
        min_decibels: float = -100.0,
        max_decibels: float = -30.0,
    ):
        """
        Initialize the driver.

        Args:
            context_factory: Builds the audio context; called with
                ``sample_rate=``. Swap in a headless sink here.
            smoothing_time_constant: Analyser smoothing across reads.
            min_decibels: Analyser floor mapped to byte 0.
            max_decibels: Analyser ceiling mapped to byte 255.
        """
        self.context_factory = context_factory
        self.smoothing_time_constant = smoothing_time_constant
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels

        self.frequency_data = _EMPTY
        self.time_data = _EMPTY
        self.playback = PlaybackState()

        self.element: MediaElement | None = None
        self.fft_size: int | None = None
        self.context: AudioContext | None = None
        self.analyser: AnalyserNode | None = None
        self.source: MediaElementSourceNode | None = None

        self._observers: dict[str, Callable] = {}
        self._metadata_listener: Callable | None = None

    # -- lifecycle -----------------------------------------------------------

    @property
    def initialized(self) -> bool:
        """True once the graph exists and buffers are allocated."""
        return self.analyser is not None

    def initialize(self, element: MediaElement, fft_size: int = 1024) -> None:
        """
        Attach to a media element.

        The graph is built right away when the element already has metadata,
        otherwise on its ``loadedmetadata`` event.

        Raises:
            GraphAlreadyConnected: Called again on the same element without an
                intervening ``teardown()``, or the element is wrapped by
                another graph.
            ValueError: ``fft_size`` is not a valid analyser size.
        """
        validate_fft_size(fft_size)
        if self.element is not None:
            if self.element is element:
                raise GraphAlreadyConnected(
                    "AnalysisDriver is already attached to this media element"
                )
            raise GraphAlreadyConnected(
                "AnalysisDriver is attached to another media element; call teardown() first"
            )

        if element.ready_state >= HAVE_METADATA:
            # Roll back on failure so the element can be attached again.
            self.element = element
            self.fft_size = fft_size
            try:
                self._build_graph()
            except Exception:
                self.element = None
                self.fft_size = None
                raise
            self._register_observers()
        else:
            self.element = element
            self.fft_size = fft_size
            self._register_observers()
            self._metadata_listener = self._on_loaded_metadata
            element.add_event_listener("loadedmetadata", self._metadata_listener)

        self._sync_playback()

    def _on_loaded_metadata(self, element: MediaElement) -> None:
        element.remove_event_listener("loadedmetadata", self._metadata_listener)
        self._metadata_listener = None
        try:
            self._build_graph()
        except RuntimeError as e:
            print(f"Audio graph setup failed: {e}", file=sys.stderr)
            return
        self._sync_playback()

    def _build_graph(self) -> None:
        element = self.element
        context = self.context_factory(sample_rate=element.sample_rate)
        try:
            analyser = context.create_analyser(
                fft_size=self.fft_size,
                smoothing_time_constant=self.smoothing_time_constant,
                min_decibels=self.min_decibels,
                max_decibels=self.max_decibels,
            )
            source = context.create_media_element_source(element)
        except Exception:
            context.close()
            raise

        source.connect(analyser)
        analyser.connect(context.destination)
        context.destination.gain = element.output_gain

        self.context = context
        self.analyser = analyser
        self.source = source
        self.frequency_data = np.zeros(analyser.frequency_bin_count, dtype=np.uint8)
        self.time_data = np.full(analyser.frequency_bin_count, 128, dtype=np.uint8)

        if not element.paused:
            self._resume_context()

    def _resume_context(self) -> None:
        """Resume the context; an output device failure leaves it suspended."""
        try:
            self.context.resume()
        except Exception as e:
            print(f"Audio output failed to start: {e}", file=sys.stderr)

    def _register_observers(self) -> None:
        self._observers = {
            "play": self._on_play,
            "pause": self._on_pause,
            "ended": self._on_pause,
            "timeupdate": self._on_time_update,
            "durationchange": self._on_duration_change,
            "volumechange": self._on_volume_change,
            "emptied": self._on_emptied,
        }
        for event, callback in self._observers.items():
            self.element.add_event_listener(event, callback)

    def _unregister_observers(self) -> None:
        for event, callback in self._observers.items():
            self.element.remove_event_listener(event, callback)
        self._observers = {}

    def teardown(self) -> None:
        """Disconnect the graph and release the audio context. Idempotent."""
        if self.element is None:
            return

        self._unregister_observers()
        if self._metadata_listener is not None:
            self.element.remove_event_listener("loadedmetadata", self._metadata_listener)
            self._metadata_listener = None

        self._release_graph()
        self.element = None
        self.fft_size = None

    def _release_graph(self) -> None:
        if self.source is not None:
            self.source.disconnect()
        if self.analyser is not None:
            self.analyser.disconnect()
        if self.context is not None:
            self.context.close()

        self.source = None
        self.analyser = None
        self.context = None
        self.frequency_data = _EMPTY
        self.time_data = _EMPTY

    def reconfigure(self, fft_size: int) -> None:
        """Rebuild the whole graph for a new FFT size."""
        element = self.element
        if element is None:
            raise RuntimeError("AnalysisDriver is not attached to a media element")
        validate_fft_size(fft_size)
        self.teardown()
        self.initialize(element, fft_size)

    # -- per tick ------------------------------------------------------------

    def sample(self) -> tuple[np.ndarray, np.ndarray]:
        """
        Refresh both buffers from the analyser.

        Returns:
            ``(frequency_data, time_data)`` references. Left at their last
            values when the graph is not built yet or the context is still
            suspended.
        """
        if self.element is not None:
            self.element.dispatch_events()

        if self.analyser is None or self.context.state != "running":
            return self.frequency_data, self.time_data

        self.context.pump()
        self.analyser.get_byte_frequency_data(self.frequency_data)
        self.analyser.get_byte_time_domain_data(self.time_data)
        self.playback.current_time = self.element.current_time

        return self.frequency_data, self.time_data

    # -- observers -----------------------------------------------------------

    def _sync_playback(self) -> None:
        element = self.element
        self.playback.is_playing = not element.paused
        self.playback.current_time = element.current_time
        self.playback.duration = element.duration
        self.playback.volume = 0.0 if element.muted else element.volume

    def _on_play(self, element: MediaElement) -> None:
        self.playback.is_playing = True
        if self.context is not None and self.context.state == "suspended":
            self._resume_context()

    def _on_pause(self, element: MediaElement) -> None:
        self.playback.is_playing = False

    def _on_time_update(self, element: MediaElement) -> None:
        self.playback.current_time = element.current_time

    def _on_duration_change(self, element: MediaElement) -> None:
        self.playback.duration = element.duration

    def _on_volume_change(self, element: MediaElement) -> None:
        self.playback.volume = 0.0 if element.muted else element.volume
        if self.context is not None:
            self.context.destination.gain = element.output_gain

    def _on_emptied(self, element: MediaElement) -> None:
        # The output stream runs at the context rate; a new track at another
        # rate needs a fresh context.
        if self.context is None or self.context.sample_rate == element.sample_rate:
            return
        self._release_graph()
        try:
            self._build_graph()
        except RuntimeError as e:
            print(f"Audio graph setup failed: {e}", file=sys.stderr)

    # -- read-only views -----------------------------------------------------

    @property
    def is_playing(self) -> bool:
        return self.playback.is_playing

    @property
    def current_time(self) -> float:
        return self.playback.current_time

    @property
    def duration(self) -> float:
        return self.playback.duration

    @property
    def volume(self) -> float:
        return self.playback.volume

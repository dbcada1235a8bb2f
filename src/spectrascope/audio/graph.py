"""
Audio processing graph.

A minimal pull-based graph: media element source -> analyser -> destination.
The output sink drives the graph by pulling blocks from the destination,
either from a PortAudio callback (``SoundDeviceSink``) or from the frame loop
against a clock (``ClockSink``, for headless runs and tests).
"""

import threading
import time
from typing import Callable

import numpy as np
from scipy import signal as scipy_signal

from spectrascope.audio.media import MediaElement

MIN_FFT_SIZE = 32
MAX_FFT_SIZE = 32768


class GraphAlreadyConnected(RuntimeError):
    """A media element can be wrapped by at most one live source node."""


def validate_fft_size(fft_size: int) -> int:
    """Return ``fft_size`` if it is a power of two in [32, 32768]."""
    if (
        not isinstance(fft_size, int)
        or fft_size < MIN_FFT_SIZE
        or fft_size > MAX_FFT_SIZE
        or fft_size & (fft_size - 1)
    ):
        raise ValueError(
            f"fft_size must be a power of two between {MIN_FFT_SIZE} and "
            f"{MAX_FFT_SIZE}, got {fft_size!r}"
        )
    return fft_size


class AudioNode:
    """Base node with a single input and a single output."""

    def __init__(self, context: "AudioContext"):
        self.context = context
        self._input: AudioNode | None = None
        self._output: AudioNode | None = None

    def connect(self, node: "AudioNode") -> "AudioNode":
        self._output = node
        node._input = self
        return node

    def disconnect(self) -> None:
        if self._output is not None and self._output._input is self:
            self._output._input = None
        self._output = None

    @property
    def connected(self) -> bool:
        return self._output is not None

    def pull(self, frames: int) -> np.ndarray:
        if self._input is None:
            return np.zeros(frames, dtype=np.float32)
        return self._input.pull(frames)


class MediaElementSourceNode(AudioNode):
    """Source node wrapping a media element."""

    def __init__(self, context: "AudioContext", element: MediaElement):
        super().__init__(context)
        self.element = element

    def pull(self, frames: int) -> np.ndarray:
        if self.element is None:
            return np.zeros(frames, dtype=np.float32)
        return self.element.read(frames)

    def disconnect(self) -> None:
        """Disconnect and release the element so it can be wrapped again."""
        super().disconnect()
        if self.element is not None and self.element.source_node is self:
            self.element.source_node = None
        self.element = None


class AnalyserNode(AudioNode):
    """
    Pass-through node exposing frequency and time-domain snapshots.

    Keeps the last ``fft_size`` samples that flowed through it. Frequency
    data is Blackman-windowed, smoothed over successive reads with
    ``smoothing_time_constant`` and mapped from the decibel range
    [``min_decibels``, ``max_decibels``] onto bytes.
    """

    def __init__(
        self,
        context: "AudioContext",
        fft_size: int = 2048,
        smoothing_time_constant: float = 0.8,
        min_decibels: float = -100.0,
        max_decibels: float = -30.0,
    ):
        super().__init__(context)
        self._lock = threading.Lock()
        self.smoothing_time_constant = smoothing_time_constant
        self.min_decibels = min_decibels
        self.max_decibels = max_decibels
        self.fft_size = fft_size

    @property
    def fft_size(self) -> int:
        return self._fft_size

    @fft_size.setter
    def fft_size(self, value: int) -> None:
        value = validate_fft_size(value)
        with self._lock:
            self._fft_size = value
            self._ring = np.zeros(value, dtype=np.float32)
            self._write = 0
            self._window = scipy_signal.get_window("blackman", value).astype(np.float64)
            self._previous = np.zeros(value // 2, dtype=np.float64)

    @property
    def frequency_bin_count(self) -> int:
        return self._fft_size // 2

    def pull(self, frames: int) -> np.ndarray:
        block = super().pull(frames)
        self._record(block)
        return block

    def _record(self, block: np.ndarray) -> None:
        with self._lock:
            size = self._fft_size
            if len(block) >= size:
                self._ring[:] = block[-size:]
                self._write = 0
                return
            end = self._write + len(block)
            if end <= size:
                self._ring[self._write:end] = block
            else:
                split = size - self._write
                self._ring[self._write:] = block[:split]
                self._ring[:end - size] = block[split:]
            self._write = end % size

    def _latest(self) -> np.ndarray:
        """Most recent ``fft_size`` samples, oldest first."""
        with self._lock:
            return np.concatenate((self._ring[self._write:], self._ring[:self._write]))

    def get_float_frequency_data(self) -> np.ndarray:
        """Smoothed magnitude spectrum in decibels, one value per bin."""
        window = self._latest().astype(np.float64) * self._window
        spectrum = np.fft.rfft(window)[: self.frequency_bin_count]
        magnitude = np.abs(spectrum) / self._fft_size

        tau = min(max(self.smoothing_time_constant, 0.0), 1.0)
        self._previous = tau * self._previous + (1.0 - tau) * magnitude

        with np.errstate(divide="ignore"):
            return 20.0 * np.log10(self._previous)

    def get_byte_frequency_data(self, out: np.ndarray) -> np.ndarray:
        """Fill ``out`` in place with byte magnitudes and return it."""
        db = self.get_float_frequency_data()
        span = self.max_decibels - self.min_decibels
        scaled = (db - self.min_decibels) * (255.0 / span)
        scaled = np.nan_to_num(scaled, nan=0.0, neginf=0.0, posinf=255.0)
        values = np.clip(np.floor(scaled), 0, 255).astype(np.uint8)

        n = min(len(out), len(values))
        out[:n] = values[:n]
        return out

    def get_byte_time_domain_data(self, out: np.ndarray) -> np.ndarray:
        """Fill ``out`` in place with 128-centred byte samples and return it."""
        samples = self._latest()
        scaled = np.clip(np.floor(128.0 * (1.0 + samples.astype(np.float64))), 0, 255)

        n = min(len(out), len(scaled))
        out[:n] = scaled[:n].astype(np.uint8)
        return out


class AudioDestination(AudioNode):
    """Output node; applies the element's output gain."""

    def __init__(self, context: "AudioContext"):
        super().__init__(context)
        self.gain = 1.0

    def pull(self, frames: int) -> np.ndarray:
        return super().pull(frames) * np.float32(self.gain)


class ClockSink:
    """
    Headless sink that pulls the graph according to elapsed clock time.

    Nothing is played; the pulled audio only feeds the analyser. ``pump()``
    is called once per frame by the analysis driver.
    """

    def __init__(self, context: "AudioContext", clock: Callable[[], float] = time.monotonic):
        self.context = context
        self.clock = clock
        self._last: float | None = None
        self._carry = 0.0

    def start(self) -> None:
        self._last = self.clock()
        self._carry = 0.0

    def pump(self) -> int:
        if self._last is None or self.context.state != "running":
            return 0
        now = self.clock()
        exact = (now - self._last) * self.context.sample_rate + self._carry
        self._last = now
        frames = int(exact)
        self._carry = exact - frames
        if frames > 0:
            self.context.destination.pull(frames)
        return frames

    def stop(self) -> None:
        self._last = None

    def close(self) -> None:
        self.stop()


class SoundDeviceSink:
    """
    Real-time sink: a PortAudio output stream whose callback pulls the graph.

    ``sounddevice`` is imported on start so headless runs never need PortAudio.
    """

    def __init__(self, context: "AudioContext", blocksize: int = 1024):
        self.context = context
        self.blocksize = blocksize
        self._stream = None

    def _callback(self, outdata, frames, time_info, status):
        """Audio callback; runs on the real-time PortAudio thread."""
        if self.context.state != "running":
            outdata.fill(0)
            return
        outdata[:, 0] = self.context.destination.pull(frames)

    def start(self) -> None:
        if self._stream is None:
            import sounddevice as sd

            self._stream = sd.OutputStream(
                samplerate=self.context.sample_rate,
                channels=1,
                blocksize=self.blocksize,
                dtype="float32",
                callback=self._callback,
            )
        try:
            self._stream.start()
        except Exception:
            self._stream.close()
            self._stream = None
            raise

    def pump(self) -> int:
        return 0

    def stop(self) -> None:
        if self._stream is not None:
            self._stream.stop()

    def close(self) -> None:
        if self._stream is not None:
            self._stream.stop()
            self._stream.close()
            self._stream = None


class AudioContext:
    """
    Owner of the graph and its output sink.

    Starts ``suspended`` until ``resume()`` (a user play action), mirroring
    browser autoplay policy. ``close()`` releases the sink for good.
    """

    def __init__(
        self,
        sample_rate: int = 44100,
        sink_factory: Callable[["AudioContext"], object] | None = None,
    ):
        self.sample_rate = int(sample_rate)
        self.state = "suspended"
        self.destination = AudioDestination(self)
        self._sink = (sink_factory or SoundDeviceSink)(self)

    @property
    def sink(self):
        return self._sink

    def _check_open(self) -> None:
        if self.state == "closed":
            raise RuntimeError("AudioContext is closed")

    def create_analyser(self, **kwargs) -> AnalyserNode:
        self._check_open()
        return AnalyserNode(self, **kwargs)

    def create_media_element_source(self, element: MediaElement) -> MediaElementSourceNode:
        """
        Wrap a media element in a source node.

        Raises:
            GraphAlreadyConnected: The element is already wrapped by a live
                source node.
        """
        self._check_open()
        if element.source_node is not None:
            raise GraphAlreadyConnected(
                "Media element is already connected to an audio graph; "
                "tear the previous graph down first"
            )
        node = MediaElementSourceNode(self, element)
        element.source_node = node
        return node

    def resume(self) -> None:
        """
        Start the output sink, then mark the context running.

        Raises:
            RuntimeError: The context is closed.
            Exception: Whatever the sink raises when the output device cannot
                be opened; the context stays suspended.
        """
        self._check_open()
        if self.state == "running":
            return
        self._sink.start()
        self.state = "running"

    def suspend(self) -> None:
        self._check_open()
        if self.state == "running":
            self.state = "suspended"
            self._sink.stop()

    def pump(self) -> int:
        """Advance clock-driven sinks; a no-op for callback sinks."""
        if self.state != "running":
            return 0
        return self._sink.pump()

    def close(self) -> None:
        if self.state == "closed":
            return
        self.state = "closed"
        self._sink.close()

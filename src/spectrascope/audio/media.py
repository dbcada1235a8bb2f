"""
Playable media element.

Holds decoded audio and a play cursor, exposes transport controls and
HTML-media-style events. The audio output thread pulls samples through
``read()``; events it raises are queued and delivered on the frame thread
by ``dispatch_events()``.
"""

import math
import mimetypes
import threading
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Union

import librosa
import numpy as np

MAX_FILE_BYTES = 30 * 1024 * 1024

# Ready states, as on an HTML media element.
HAVE_NOTHING = 0
HAVE_METADATA = 1
HAVE_ENOUGH_DATA = 4

EVENTS = (
    "loadedmetadata",
    "durationchange",
    "play",
    "pause",
    "timeupdate",
    "ended",
    "volumechange",
    "emptied",
)


class InvalidAudioFile(ValueError):
    """Raised when a file is not an acceptable audio upload."""


@dataclass
class PlaybackState:
    """Transport-derived state read by the renderer as an intensity modulator."""

    is_playing: bool = False
    current_time: float = 0.0
    duration: float = float("nan")
    volume: float = 0.7


def validate_audio_file(path: Union[str, Path], max_bytes: int = MAX_FILE_BYTES) -> Path:
    """
    Check that a file looks like audio and is under the size ceiling.

    Args:
        path: Candidate file.
        max_bytes: Size ceiling (30 MB by default).

    Returns:
        The path as a ``Path``.

    Raises:
        InvalidAudioFile: Missing file, non-audio MIME type, or too large.
    """
    path = Path(path)
    if not path.is_file():
        raise InvalidAudioFile(f"Audio file not found: {path}")

    mime, _ = mimetypes.guess_type(path.name)
    if mime is None or not mime.startswith("audio/"):
        raise InvalidAudioFile(f"Not an audio file: {path.name} ({mime or 'unknown type'})")

    size = path.stat().st_size
    if size > max_bytes:
        raise InvalidAudioFile(
            f"File is too large ({size / 1024 / 1024:.1f} MB); "
            f"limit is {max_bytes / 1024 / 1024:.0f} MB"
        )
    return path


class MediaElement:
    """
    Decoded audio with a transport.

    Sample data is mono float32. ``current_time`` is derived from the play
    cursor, which only the output sink advances.
    """

    def __init__(self, volume: float = 0.7):
        self._lock = threading.Lock()
        self._samples = np.zeros(0, dtype=np.float32)
        self._sample_rate = 44100
        self._cursor = 0
        self._paused = True
        self._ended = False
        self._volume = min(max(volume, 0.0), 1.0)
        self._muted = False
        self._restore_volume = self._volume
        self.ready_state = HAVE_NOTHING
        self.title: str | None = None

        self._listeners: dict[str, list[Callable]] = {name: [] for name in EVENTS}
        self._pending: deque = deque()

        # Set by the audio graph while a source node wraps this element.
        self.source_node = None

    # -- loading -----------------------------------------------------------

    def load(self, path: Union[str, Path], sr: int | None = None) -> None:
        """
        Decode an audio file and make it the current media.

        Args:
            path: Audio file (wav, mp3, flac, ogg).
            sr: Target rate; None keeps the file's native rate.

        Raises:
            InvalidAudioFile: The file cannot be decoded.
        """
        path = Path(path)
        try:
            y, rate = librosa.load(path, sr=sr, mono=True)
        except Exception as e:
            raise InvalidAudioFile(f"Could not decode {path.name}: {e}") from e
        self.load_array(y, rate)
        self.title = path.stem

    def load_array(self, samples: np.ndarray, sample_rate: int) -> None:
        """Use an in-memory mono signal as the current media."""
        data = np.asarray(samples, dtype=np.float32)
        if data.ndim > 1:
            data = data.mean(axis=0 if data.shape[0] < data.shape[1] else 1)

        with self._lock:
            was_loaded = self.ready_state >= HAVE_METADATA
            self._samples = np.ascontiguousarray(data)
            self._sample_rate = int(sample_rate)
            self._cursor = 0
            self._paused = True
            self._ended = False
            self.ready_state = HAVE_ENOUGH_DATA

        if was_loaded:
            self._emit("emptied")
        self._emit("durationchange")
        self._emit("loadedmetadata")
        self.dispatch_events()

    # -- read-only state -----------------------------------------------------

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def duration(self) -> float:
        if self.ready_state < HAVE_METADATA:
            return float("nan")
        return len(self._samples) / self._sample_rate

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def current_time(self) -> float:
        return self._cursor / self._sample_rate

    @current_time.setter
    def current_time(self, seconds: float) -> None:
        self.seek(seconds)

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float) -> None:
        value = min(max(float(value), 0.0), 1.0)
        if value == self._volume:
            return
        self._volume = value
        if value > 0:
            self._restore_volume = value
        self._emit("volumechange")
        self.dispatch_events()

    @property
    def muted(self) -> bool:
        return self._muted

    @property
    def output_gain(self) -> float:
        """Gain applied at the output sink."""
        return 0.0 if self._muted else self._volume

    # -- transport -----------------------------------------------------------

    def play(self) -> None:
        if self.ready_state < HAVE_METADATA or not self._paused:
            return
        with self._lock:
            if self._ended or self._cursor >= len(self._samples):
                self._cursor = 0
            self._ended = False
            self._paused = False
        self._emit("play")
        self.dispatch_events()

    def pause(self) -> None:
        if self._paused:
            return
        self._paused = True
        self._emit("pause")
        self.dispatch_events()

    def toggle_play(self) -> None:
        if self._paused:
            self.play()
        else:
            self.pause()

    def seek(self, seconds: float) -> None:
        """Move the play cursor. Non-finite targets are ignored."""
        if self.ready_state < HAVE_METADATA or not math.isfinite(seconds):
            return
        with self._lock:
            target = int(round(seconds * self._sample_rate))
            self._cursor = min(max(target, 0), len(self._samples))
            self._ended = False
        self._emit("timeupdate")
        self.dispatch_events()

    def set_muted(self, muted: bool) -> None:
        if muted == self._muted:
            return
        self._muted = muted
        self._emit("volumechange")
        self.dispatch_events()

    def toggle_mute(self) -> None:
        """
        Mute, or unmute restoring the last audible volume.

        A volume of zero counts as muted; unmuting it falls back to 0.5.
        """
        if self._muted or self._volume == 0:
            self._muted = False
            self.volume = self._restore_volume if self._restore_volume > 0 else 0.5
            self._emit("volumechange")
            self.dispatch_events()
        else:
            self.set_muted(True)

    # -- audio thread --------------------------------------------------------

    def read(self, frames: int) -> np.ndarray:
        """
        Pull ``frames`` raw samples at the cursor and advance it.

        Returns silence while paused. Reaching the end pauses playback and
        queues ``ended``; the event is delivered by ``dispatch_events()``.
        """
        out = np.zeros(frames, dtype=np.float32)
        if self._paused or frames <= 0:
            return out

        with self._lock:
            start = self._cursor
            n = max(0, min(frames, len(self._samples) - start))
            if n:
                out[:n] = self._samples[start:start + n]
            self._cursor = start + n
            finished = self._cursor >= len(self._samples)
            if finished:
                self._paused = True
                self._ended = True

        self._emit("timeupdate")
        if finished:
            self._emit("pause")
            self._emit("ended")
        return out

    # -- events --------------------------------------------------------------

    def add_event_listener(self, event: str, callback: Callable) -> None:
        if event not in self._listeners:
            raise ValueError(f"Unknown media event: {event}")
        self._listeners[event].append(callback)

    def remove_event_listener(self, event: str, callback: Callable) -> None:
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def _emit(self, event: str) -> None:
        # deque.append is atomic, so the audio thread can queue without the lock.
        self._pending.append(event)

    def dispatch_events(self) -> int:
        """
        Deliver queued events on the calling thread.

        Consecutive duplicate ``timeupdate`` events collapse into one.

        Returns:
            Number of events delivered.
        """
        delivered = 0
        last = None
        while self._pending:
            event = self._pending.popleft()
            if event == "timeupdate" and last == "timeupdate":
                continue
            last = event
            for callback in list(self._listeners[event]):
                callback(self)
            delivered += 1
        return delivered

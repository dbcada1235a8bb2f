"""Pytest configuration and shared fixtures."""

import os
from functools import partial

# pygame must never try to open a real window or audio device under test.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import numpy as np
import pytest

from spectrascope.audio.graph import AudioContext, ClockSink
from spectrascope.audio.media import MediaElement
from spectrascope.render.scheduler import ManualScheduler

# Default sample rate for test audio
TEST_SR = 22050


@pytest.fixture
def sample_rate() -> int:
    """Default sample rate for tests."""
    return TEST_SR


@pytest.fixture
def pure_sine(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate a pure 440Hz sine wave (A4 note).

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    duration = 2.0  # 2 seconds
    t = np.linspace(0, duration, int(sample_rate * duration), endpoint=False)
    frequency = 440.0  # A4
    y = 0.5 * np.sin(2 * np.pi * frequency * t)
    return y.astype(np.float32), sample_rate


@pytest.fixture
def white_noise(sample_rate: int) -> tuple[np.ndarray, int]:
    """
    Generate white noise.

    Returns:
        Tuple of (audio_signal, sample_rate).
    """
    np.random.seed(42)  # Reproducible
    duration = 2.0
    samples = int(sample_rate * duration)
    y = np.random.randn(samples).astype(np.float32) * 0.3
    return y, sample_rate


@pytest.fixture
def silence(sample_rate: int) -> tuple[np.ndarray, int]:
    """Two seconds of digital silence."""
    return np.zeros(int(sample_rate * 2.0), dtype=np.float32), sample_rate


@pytest.fixture
def temp_audio_file(tmp_path, pure_sine):
    """Create a temporary audio file for testing file I/O."""
    import soundfile as sf

    y, sr = pure_sine
    audio_path = tmp_path / "test_audio.wav"
    sf.write(audio_path, y, sr)
    return audio_path


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Manual frame scheduler whose clock also drives the audio sink."""
    return ManualScheduler(fps=60)


@pytest.fixture
def context_factory(scheduler):
    """
    Audio context factory with a headless clock sink.

    Audio is pulled only as far as the scheduler's clock has moved, so tests
    control exactly how much signal reaches the analyser.
    """
    return partial(AudioContext, sink_factory=lambda ctx: ClockSink(ctx, clock=scheduler.now))


@pytest.fixture
def sine_element(pure_sine) -> MediaElement:
    """Media element loaded with the 440Hz sine."""
    y, sr = pure_sine
    element = MediaElement()
    element.load_array(y, sr)
    return element

"""Media element, audio graph and analysis driver."""

from spectrascope.audio.driver import AnalysisDriver
from spectrascope.audio.graph import (
    AnalyserNode,
    AudioContext,
    ClockSink,
    GraphAlreadyConnected,
    SoundDeviceSink,
)
from spectrascope.audio.media import (
    InvalidAudioFile,
    MediaElement,
    PlaybackState,
    validate_audio_file,
)

__all__ = [
    "AnalysisDriver",
    "AnalyserNode",
    "AudioContext",
    "ClockSink",
    "GraphAlreadyConnected",
    "SoundDeviceSink",
    "InvalidAudioFile",
    "MediaElement",
    "PlaybackState",
    "validate_audio_file",
]

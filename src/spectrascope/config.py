"""
Visualizer configuration.

A single dataclass with the window, analyser and look settings, plus the
resolution profiles and JSON config-file loading used by the CLI.
"""

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Union

from spectrascope.audio.graph import validate_fft_size
from spectrascope.core.themes import get_theme


@dataclass
class VisualizerConfig:
    """Settings for a visualizer session."""

    width: int = 960
    height: int = 540
    fps: int = 60
    pixel_ratio: float = 1.0

    # Analyser
    fft_size: int = 1024
    smoothing_time_constant: float = 0.8
    min_decibels: float = -100.0
    max_decibels: float = -30.0

    # Look
    mode: str = "bars"  # "bars", "circular", "wave"
    theme: str = "blue"
    sensitivity: float | None = None  # None: per-mode default
    volume: float = 0.7
    glow_enabled: bool = True
    background: bool = True
    show_hud: bool = True

    def validate(self) -> "VisualizerConfig":
        """Raise ValueError for settings the pipeline cannot use."""
        from spectrascope.pipeline import DrawMode

        validate_fft_size(self.fft_size)
        get_theme(self.theme)
        DrawMode(self.mode)
        if self.width < 0 or self.height < 0:
            raise ValueError("width and height must be non-negative")
        if self.fps <= 0:
            raise ValueError("fps must be positive")
        if self.pixel_ratio <= 0:
            raise ValueError("pixel_ratio must be positive")
        if self.max_decibels <= self.min_decibels:
            raise ValueError("max_decibels must be greater than min_decibels")
        if not 0.0 <= self.volume <= 1.0:
            raise ValueError("volume must be within [0, 1]")
        return self

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VisualizerConfig":
        """Build from a dict; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


PROFILES = {
    "low": {"width": 640, "height": 360, "fps": 30, "glow_enabled": False},
    "medium": {"width": 960, "height": 540, "fps": 60},
    "high": {"width": 1920, "height": 1080, "fps": 60},
}


def load_config(path: Union[str, Path]) -> VisualizerConfig:
    """Load a JSON config file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file must hold a JSON object: {path}")
    return VisualizerConfig.from_dict(data)

"""Display helpers for transport labels."""

import math


def format_time(seconds: float | None) -> str:
    """
    Format seconds as ``MM:SS``.

    Non-finite, missing and negative values render as ``"00:00"`` so a fresh
    source swap (NaN duration) never reaches the label as garbage.
    """
    if seconds is None:
        return "00:00"
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        return "00:00"
    if not math.isfinite(value) or value < 0:
        return "00:00"

    mins = int(value // 60)
    secs = int(value % 60)
    return f"{mins:02d}:{secs:02d}"


def volume_luminance(volume: float) -> float:
    """Brightness multiplier for a volume level in [0, 1]."""
    return 0.3 + volume * 0.7

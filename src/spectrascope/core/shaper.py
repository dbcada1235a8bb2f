"""
Signal shaping module.

Turns raw analyser magnitudes into bounded, smoothed intensity arrays
sized to the number of visual elements drawn in a frame.
"""

import math

import numpy as np

# Default smoothing factors per layout. Circular smooths less so the ring
# stays responsive.
BARS_SMOOTHING = 0.5
CIRCULAR_SMOOTHING = 0.4

DEFAULT_BARS_SENSITIVITY = 1.5
DEFAULT_CIRCULAR_SENSITIVITY = 1.2


def _window_means(freq: np.ndarray, n: int) -> np.ndarray:
    """
    Mean magnitude of ``n`` contiguous floor-division windows, in [0, 1].

    Bins that do not fit into ``n`` whole windows are ignored. When the buffer
    is shorter than ``n`` each window holds one bin and the trailing windows
    read as silence.
    """
    data = np.asarray(freq, dtype=np.float64)
    size = max(1, len(data) // n)

    padded = np.zeros(n * size, dtype=np.float64)
    used = min(len(data), n * size)
    padded[:used] = data[:used]

    return padded.reshape(n, size).sum(axis=1) / size / 255.0


def smooth(values, factor: float = 0.5) -> np.ndarray:
    """
    Single-pass 3-tap spatial smoothing across neighbouring elements.

    Interior element ``i`` becomes
    ``v[i] * (1 - factor) + mean(v[i - 1], v[i + 1]) * factor``, updated in
    place from left to right, so ``v[i - 1]`` is the already smoothed value.
    Endpoints are left untouched. This smooths within one frame, it is not a
    temporal filter.

    Args:
        values: Input values.
        factor: Smoothing amount in [0, 1].

    Returns:
        Smoothed array. ``factor <= 0`` returns the input unchanged and
        ``factor >= 1`` collapses the array to its mean.
    """
    if factor <= 0:
        return values

    arr = np.asarray(values, dtype=np.float64)
    if factor >= 1:
        if len(arr) == 0:
            return arr.copy()
        return np.full(len(arr), arr.mean())

    result = arr.copy()
    for i in range(1, len(result) - 1):
        neighbours = (result[i - 1] + result[i + 1]) / 2.0
        result[i] = result[i] * (1.0 - factor) + neighbours * factor
    return result


def shape_bars(
    freq: np.ndarray,
    n: int,
    sensitivity: float = DEFAULT_BARS_SENSITIVITY,
) -> np.ndarray:
    """
    Shape a frequency buffer into ``n`` bar intensities.

    Lower indices get a quieter weighting (``0.7 + (i / n) * 0.6``) so the
    low-frequency end on the left does not swamp the rest of the spectrum.

    Args:
        freq: FrequencyBuffer of unsigned 8-bit magnitudes.
        n: Number of bars.
        sensitivity: Gain applied after normalization.

    Returns:
        Float array of length ``n`` with values in [0, 1].
    """
    if n <= 0:
        return np.zeros(0)
    if len(freq) == 0:
        return np.zeros(n)

    means = _window_means(freq, n)
    weights = 0.7 + (np.arange(n) / n) * 0.6
    shaped = np.clip(means * max(sensitivity, 0.0) * weights, 0.0, 1.0)

    return smooth(shaped, BARS_SMOOTHING)


def shape_circular(
    freq: np.ndarray,
    n: int,
    sensitivity: float = DEFAULT_CIRCULAR_SENSITIVITY,
) -> np.ndarray:
    """
    Shape a frequency buffer into ``n`` radial intensities.

    Uses the same windowed means as :func:`shape_bars` with a tri-lobed
    angular ripple ``1 + 0.3 * sin(3 * angle)`` instead of a ramp.
    """
    if n <= 0:
        return np.zeros(0)
    if len(freq) == 0:
        return np.zeros(n)

    means = _window_means(freq, n)
    angles = np.arange(n) / n * 2.0 * math.pi
    weights = 1.0 + 0.3 * np.sin(angles * 3.0)
    shaped = np.clip(means * max(sensitivity, 0.0) * weights, 0.0, 1.0)

    return smooth(shaped, CIRCULAR_SMOOTHING)


class SignalShaper:
    """
    Stateless facade over the shaping transforms.

    Holds the per-layout default sensitivities so callers can pass ``None``
    and get the layout's natural response.
    """

    def __init__(
        self,
        bars_sensitivity: float = DEFAULT_BARS_SENSITIVITY,
        circular_sensitivity: float = DEFAULT_CIRCULAR_SENSITIVITY,
    ):
        self.bars_sensitivity = bars_sensitivity
        self.circular_sensitivity = circular_sensitivity

    def bars(self, freq: np.ndarray, n: int, sensitivity: float | None = None) -> np.ndarray:
        if sensitivity is None:
            sensitivity = self.bars_sensitivity
        return shape_bars(freq, n, sensitivity)

    def circular(self, freq: np.ndarray, n: int, sensitivity: float | None = None) -> np.ndarray:
        if sensitivity is None:
            sensitivity = self.circular_sensitivity
        return shape_circular(freq, n, sensitivity)

    def smooth(self, values, factor: float = 0.5) -> np.ndarray:
        return smooth(values, factor)

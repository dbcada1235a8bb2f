"""Tests for the signal shaping module."""

import numpy as np
import pytest

from spectrascope.core.shaper import (
    DEFAULT_BARS_SENSITIVITY,
    DEFAULT_CIRCULAR_SENSITIVITY,
    SignalShaper,
    shape_bars,
    shape_circular,
    smooth,
)


class TestSmooth:
    """Tests for single-pass neighbour smoothing."""

    def test_zero_factor_returns_input(self):
        """factor <= 0 should hand back the input untouched."""
        values = np.array([0.1, 0.9, 0.2])
        assert smooth(values, 0.0) is values

    def test_full_factor_collapses_to_mean(self):
        """factor >= 1 should flatten every element to the mean."""
        result = smooth(np.array([0.0, 1.0, 0.5, 0.5]), 1.0)
        assert np.allclose(result, 0.5)

    def test_endpoints_untouched(self):
        """First and last elements keep their values."""
        result = smooth(np.array([1.0, 0.0, 0.0, 1.0]), 0.5)
        assert result[0] == 1.0
        assert result[-1] == 1.0

    def test_interior_blend(self):
        """Interior element blends with the mean of its neighbours."""
        result = smooth(np.array([0.0, 1.0, 0.0]), 0.5)
        assert np.allclose(result, [0.0, 0.5, 0.0])

    def test_left_neighbour_already_smoothed(self):
        """The pass runs left to right, each element seeing the updated one before it."""
        result = smooth(np.array([1.0, 0.0, 0.0, 0.0]), 0.5)
        assert np.allclose(result, [1.0, 0.25, 0.0625, 0.0])

    def test_spike_spreads_rightward(self):
        result = smooth(np.array([0.0, 1.0, 0.0, 0.0]), 0.5)
        assert np.allclose(result, [0.0, 0.5, 0.125, 0.0])

    @pytest.mark.parametrize("factor", [0.1, 0.5, 0.9])
    def test_interior_between_value_and_neighbour_mean(self, factor):
        values = np.array([0.2, 0.9, 0.1, 0.6, 0.4])
        result = smooth(values, factor)

        for i in range(1, len(values) - 1):
            mean = (result[i - 1] + values[i + 1]) / 2
            low, high = sorted((values[i], mean))
            assert low < result[i] < high

    def test_short_arrays(self):
        """Arrays with fewer than three elements have no interior."""
        assert np.allclose(smooth(np.array([0.3, 0.7]), 0.5), [0.3, 0.7])
        assert len(smooth(np.array([]), 0.5)) == 0

    def test_does_not_mutate_input(self):
        """The input array should be left as it was."""
        values = np.array([0.0, 1.0, 0.0])
        smooth(values, 0.5)
        assert np.array_equal(values, [0.0, 1.0, 0.0])


class TestShapeBars:
    """Tests for bar intensity shaping."""

    def test_length_and_range(self):
        """Output has n values in [0, 1]."""
        freq = np.random.default_rng(1).integers(0, 256, 512).astype(np.uint8)
        result = shape_bars(freq, 64)

        assert len(result) == 64
        assert result.min() >= 0.0
        assert result.max() <= 1.0

    def test_silence_is_zero(self):
        """All-zero input gives all-zero output."""
        assert np.allclose(shape_bars(np.zeros(512, dtype=np.uint8), 64), 0.0)

    def test_empty_buffer(self):
        """Empty input gives n zeros."""
        assert np.allclose(shape_bars(np.zeros(0, dtype=np.uint8), 16), np.zeros(16))

    def test_nonpositive_count(self):
        """n <= 0 gives an empty result."""
        assert len(shape_bars(np.full(64, 200, dtype=np.uint8), 0)) == 0

    def test_loud_input_clips_to_one(self):
        """Full-scale input with gain saturates every bar at 1."""
        result = shape_bars(np.full(512, 255, dtype=np.uint8), 32)
        assert np.allclose(result, 1.0)

    def test_low_end_weighting(self):
        """Constant input ramps up from 0.7x on the left toward 1.3x."""
        n = 8
        result = shape_bars(np.full(256, 100, dtype=np.uint8), n, sensitivity=1.0)

        weights = 0.7 + (np.arange(n) / n) * 0.6
        assert np.allclose(result, 100 / 255 * weights)
        assert np.all(np.diff(result) > 0)

    def test_short_buffer_pads_with_silence(self):
        """A buffer shorter than n fills one bin per window, then silence."""
        result = shape_bars(np.array([255, 255, 255], dtype=np.uint8), 8, sensitivity=1.0)

        assert np.isclose(result[0], 0.7)
        assert np.isclose(result[1], 0.775)
        assert np.isclose(result[2], 0.61875)
        assert np.isclose(result[3], 0.61875 / 4)
        # Silent windows only pick up the tail of the smoothing pass.
        assert np.all(np.diff(result[2:7]) < 0)
        assert result[-1] == 0.0

    def test_two_bars_no_interior(self):
        """Four full-scale bins over two bars: weights apply, smoothing has nothing to do."""
        result = shape_bars(np.array([255, 255, 255, 255], dtype=np.uint8), 2, sensitivity=1.0)
        assert np.allclose(result, [0.7, 1.0])

    def test_trailing_bins_ignored(self):
        """Bins past the last whole window do not contribute."""
        freq = np.array([0] * 8 + [255, 255], dtype=np.uint8)
        assert np.allclose(shape_bars(freq, 4), 0.0)

    def test_negative_sensitivity_clamps(self):
        """Negative gain behaves like zero gain."""
        result = shape_bars(np.full(256, 200, dtype=np.uint8), 16, sensitivity=-2.0)
        assert np.allclose(result, 0.0)


class TestShapeCircular:
    """Tests for radial intensity shaping."""

    def test_length_and_range(self):
        freq = np.random.default_rng(2).integers(0, 256, 512).astype(np.uint8)
        result = shape_circular(freq, 128)

        assert len(result) == 128
        assert 0.0 <= result.min() <= result.max() <= 1.0

    def test_silence_is_zero(self):
        assert np.allclose(shape_circular(np.zeros(512, dtype=np.uint8), 128), 0.0)

    def test_tri_lobed_ripple(self):
        """Constant input peaks where sin(3a) = 1 and dips where it is -1."""
        n = 48
        result = shape_circular(np.full(480, 100, dtype=np.uint8), n, sensitivity=1.0)

        peak = n // 12  # angle pi/6
        trough = n // 4  # angle pi/2
        assert result[peak] > result[0] > result[trough]


class TestSignalShaper:
    """Tests for the shaping facade."""

    def test_default_sensitivities(self):
        shaper = SignalShaper()
        assert shaper.bars_sensitivity == DEFAULT_BARS_SENSITIVITY
        assert shaper.circular_sensitivity == DEFAULT_CIRCULAR_SENSITIVITY

    @pytest.mark.parametrize("n", [16, 128])
    def test_none_uses_layout_default(self, n):
        """sensitivity=None matches the module functions with their defaults."""
        freq = np.linspace(0, 255, 1024).astype(np.uint8)
        shaper = SignalShaper()

        assert np.allclose(shaper.bars(freq, n), shape_bars(freq, n, 1.5))
        assert np.allclose(shaper.circular(freq, n), shape_circular(freq, n, 1.2))

    def test_explicit_sensitivity(self):
        freq = np.full(256, 60, dtype=np.uint8)
        shaper = SignalShaper()
        assert np.allclose(shaper.bars(freq, 8, 0.5), shape_bars(freq, 8, 0.5))

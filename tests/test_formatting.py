"""Tests for transport label helpers."""

import math

import pytest

from spectrascope.core.formatting import format_time, volume_luminance


class TestFormatTime:
    """Tests for MM:SS formatting."""

    @pytest.mark.parametrize(
        "seconds, expected",
        [
            (0, "00:00"),
            (5.9, "00:05"),
            (65.2, "01:05"),
            (600, "10:00"),
            (3599, "59:59"),
            (3600, "60:00"),
        ],
    )
    def test_formats_minutes_and_seconds(self, seconds, expected):
        assert format_time(seconds) == expected

    @pytest.mark.parametrize(
        "seconds", [math.nan, math.inf, -math.inf, None, -5.0, "abc"]
    )
    def test_invalid_values_render_zero(self, seconds):
        """NaN (fresh source swap), infinities, None and negatives all read 00:00."""
        assert format_time(seconds) == "00:00"

    def test_numeric_string(self):
        assert format_time("12") == "00:12"


class TestVolumeLuminance:
    def test_range(self):
        assert volume_luminance(0.0) == pytest.approx(0.3)
        assert volume_luminance(1.0) == pytest.approx(1.0)
        assert volume_luminance(0.5) == pytest.approx(0.65)

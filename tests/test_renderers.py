"""Tests for the layout renderers."""

import math

import numpy as np
import pytest

from spectrascope.core.themes import THEMES
from spectrascope.render.commands import (
    Circle,
    Line,
    LinearGradient,
    Polyline,
    RadialGradient,
    Rect,
    RoundedBar,
    Text,
)
from spectrascope.render.renderers import (
    HINT_TEXT,
    BackgroundEnergy,
    bar_count,
    render_background,
    render_bars,
    render_circular,
    render_placeholder,
    render_wave,
    smooth_closed_curve,
)

BLUE = THEMES["blue"]
WIDTH, HEIGHT = 800.0, 400.0


def _of(commands, kind):
    return [c for c in commands if isinstance(c, kind)]


@pytest.fixture
def loud_freq():
    return np.full(512, 220, dtype=np.uint8)


@pytest.fixture
def silent_freq():
    return np.zeros(512, dtype=np.uint8)


class TestBars:
    """Tests for the bars layout."""

    @pytest.mark.parametrize("width, expected", [(2000, 128), (1024, 128), (400, 50), (7, 0)])
    def test_bar_count(self, width, expected):
        assert bar_count(width) == expected

    def test_one_bar_per_slot(self, loud_freq):
        commands = render_bars(loud_freq, BLUE, WIDTH, HEIGHT)
        assert len(_of(commands, RoundedBar)) == 100

    def test_silent_bars_are_minimum_height(self, silent_freq):
        bars = _of(render_bars(silent_freq, BLUE, WIDTH, HEIGHT), RoundedBar)

        assert all(b.bottom - b.top == pytest.approx(4.0) for b in bars)
        assert all(b.glow is None for b in bars)

    def test_silent_bars_have_no_highlights(self, silent_freq):
        assert _of(render_bars(silent_freq, BLUE, WIDTH, HEIGHT), Circle) == []

    def test_loud_bars_have_highlights_and_glow(self, loud_freq):
        commands = render_bars(loud_freq, BLUE, WIDTH, HEIGHT)
        bars = _of(commands, RoundedBar)

        assert len(_of(commands, Circle)) == len(bars)
        assert all(b.glow is not None and b.glow.blur > 0 for b in bars)

    def test_bars_centered(self, loud_freq):
        bars = _of(render_bars(loud_freq, BLUE, 803.0, HEIGHT), RoundedBar)

        left = bars[0].x
        right = 803.0 - (bars[-1].x + bars[-1].width)
        assert left == pytest.approx(right)

    def test_middle_bars_tallest(self, loud_freq):
        """The sine effect lifts mid-width bars above the edges."""
        bars = _of(render_bars(loud_freq, BLUE, WIDTH, HEIGHT, sensitivity=0.5), RoundedBar)
        heights = [b.bottom - b.top for b in bars]

        assert heights[len(heights) // 2] > heights[0]

    def test_volume_scales_height(self, loud_freq):
        quiet = _of(render_bars(loud_freq, BLUE, WIDTH, HEIGHT, volume=0.2), RoundedBar)
        loud = _of(render_bars(loud_freq, BLUE, WIDTH, HEIGHT, volume=1.0), RoundedBar)

        assert quiet[50].top > loud[50].top

    def test_zero_volume_is_minimum_height(self, loud_freq):
        bars = _of(render_bars(loud_freq, BLUE, WIDTH, HEIGHT, volume=0.0), RoundedBar)
        assert all(b.bottom - b.top == pytest.approx(4.0) for b in bars)

    def test_narrow_canvas_draws_nothing(self, loud_freq):
        assert render_bars(loud_freq, BLUE, 5.0, HEIGHT) == []


class TestCircular:
    """Tests for the circular layout."""

    def test_structure(self, loud_freq):
        commands = render_circular(loud_freq, BLUE, WIDTH, HEIGHT, now=0.0)

        core = commands[0]
        assert isinstance(core, Circle)
        assert isinstance(core.fill, RadialGradient)
        assert core.glow.blur == 20.0
        assert core.radius == pytest.approx(min(WIDTH, HEIGHT) * 0.35 * 0.2)

        rings = _of(commands, Polyline)
        assert len(rings) == 2
        assert all(r.closed for r in rings)
        assert [r.width for r in rings] == [2.0, 4.0]

    def test_spoke_per_active_point(self, loud_freq):
        lines = _of(render_circular(loud_freq, BLUE, WIDTH, HEIGHT, now=0.0), Line)
        assert len(lines) == 128

    def test_silence_has_no_spokes(self, silent_freq):
        commands = render_circular(silent_freq, BLUE, WIDTH, HEIGHT, now=1.0)
        assert _of(commands, Line) == []
        assert len(_of(commands, Polyline)) == 2

    def test_ripple_moves_with_time(self, silent_freq):
        a = _of(render_circular(silent_freq, BLUE, WIDTH, HEIGHT, now=0.0), Polyline)[0]
        b = _of(render_circular(silent_freq, BLUE, WIDTH, HEIGHT, now=0.5), Polyline)[0]
        assert a.points != b.points

    def test_spokes_start_at_center(self, loud_freq):
        line = _of(render_circular(loud_freq, BLUE, WIDTH, HEIGHT, now=0.0), Line)[0]
        assert (line.x0, line.y0) == (WIDTH / 2, HEIGHT / 2)


class TestSmoothClosedCurve:
    def test_samples_per_point(self):
        points = [(math.cos(a), math.sin(a)) for a in np.linspace(0, 2 * math.pi, 16, endpoint=False)]
        assert len(smooth_closed_curve(points, steps=4)) == 64

    def test_starts_at_midpoint(self):
        points = [(0.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0)]
        curve = smooth_closed_curve(points)
        assert curve[0] == pytest.approx((0.0, 1.0))

    def test_degenerate_input(self):
        assert smooth_closed_curve([(1.0, 1.0), (2.0, 2.0)]) == [(1.0, 1.0), (2.0, 2.0)]


class TestWave:
    """Tests for the wave layout."""

    def test_empty_buffer(self):
        assert render_wave(np.zeros(0, dtype=np.uint8), BLUE, WIDTH, HEIGHT) == []

    def test_flat_signal_on_center_line(self):
        traces = render_wave(np.full(256, 128, dtype=np.uint8), BLUE, WIDTH, HEIGHT)

        assert len(traces) == 2
        for trace in traces:
            assert all(y == pytest.approx(HEIGHT / 2) for _, y in trace.points)

    def test_mirror_trace(self):
        data = np.linspace(0, 255, 64).astype(np.uint8)
        upper, lower = render_wave(data, BLUE, WIDTH, HEIGHT)
        center = HEIGHT / 2

        for (x1, y1), (x2, y2) in zip(upper.points, lower.points):
            assert x1 == pytest.approx(x2)
            assert y1 - center == pytest.approx(-(y2 - center))

    def test_gradient_and_fade(self):
        upper, lower = render_wave(np.full(64, 200, dtype=np.uint8), BLUE, WIDTH, HEIGHT)

        assert isinstance(upper.stroke, LinearGradient)
        assert upper.glow is not None
        assert lower.glow is None
        for full, faded in zip(upper.stroke.stops, lower.stroke.stops):
            assert faded.color.a == pytest.approx(full.color.a * 0.5)

    def test_x_spans_width(self):
        upper, _ = render_wave(np.full(100, 128, dtype=np.uint8), BLUE, WIDTH, HEIGHT)
        assert upper.points[0][0] == 0.0
        assert upper.points[1][0] == pytest.approx(WIDTH / 100)


class TestPlaceholder:
    def test_glow_and_hint(self):
        commands = render_placeholder(BLUE, WIDTH, HEIGHT, now=0.0)
        glow, hint = commands

        assert isinstance(glow, Circle)
        assert glow.radius == pytest.approx(WIDTH * 0.25 * 0.5)
        assert isinstance(hint, Text)
        assert hint.text == HINT_TEXT
        assert hint.y == pytest.approx(HEIGHT / 2 + 40)

    def test_breathes(self):
        a = render_placeholder(BLUE, WIDTH, HEIGHT, now=0.0)[0]
        b = render_placeholder(BLUE, WIDTH, HEIGHT, now=math.pi / 4)[0]
        assert b.radius > a.radius


class TestBackground:
    def test_energy_follower(self):
        energy = BackgroundEnergy()
        assert energy.update(np.full(64, 255, dtype=np.uint8)) == pytest.approx(0.4)
        assert energy.update(np.zeros(0, dtype=np.uint8)) == pytest.approx(0.4 * 0.95)

    def test_only_low_bins_count(self):
        freq = np.zeros(64, dtype=np.uint8)
        freq[32:] = 255
        assert BackgroundEnergy().update(freq) == 0.0

    def test_commands(self):
        commands = render_background(0.5, True, WIDTH, HEIGHT)

        assert isinstance(commands[0], Rect)
        assert len(_of(commands, Circle)) == 3

    def test_orbs_swell_only_while_playing(self):
        idle = _of(render_background(1.0, False, WIDTH, HEIGHT), Circle)
        playing = _of(render_background(1.0, True, WIDTH, HEIGHT), Circle)

        assert all(p.radius > i.radius for p, i in zip(playing, idle))

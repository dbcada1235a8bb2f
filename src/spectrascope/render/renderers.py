"""
Layout renderers.

Each renderer is a pure function from shaped signal (or raw buffer), theme
and geometry to an ordered list of draw commands:

- Bars: spectrum as rounded bars, tallest mid-width
- Circular: radial burst with a rotating ripple, spokes and a glowing core
- Wave: mirrored oscilloscope traces of the time-domain buffer
- Placeholder: breathing glow and hint label while there is no input
"""

import math

import numpy as np

from spectrascope.core.shaper import shape_bars, shape_circular
from spectrascope.core.themes import RGBA, ColorTheme, color_for
from spectrascope.render.commands import (
    Circle,
    ColorStop,
    Glow,
    Line,
    LinearGradient,
    Point,
    Polyline,
    RadialGradient,
    Rect,
    RoundedBar,
    Text,
)

MAX_BARS = 128
BAR_PITCH = 8
BAR_GAP = 2
CIRCULAR_POINTS = 128
HINT_TEXT = "Load an audio file to begin"


def bar_count(width: float) -> int:
    """Number of bars for a canvas width: ``min(128, floor(width / 8))``."""
    return max(0, min(MAX_BARS, int(width // BAR_PITCH)))


def render_bars(
    freq: np.ndarray,
    theme: ColorTheme,
    width: float,
    height: float,
    sensitivity: float = 1.5,
    volume: float = 0.7,
) -> list:
    """
    Spectrum bars centred in the canvas.

    Bar height is ``max(4, v * height * 0.8 * volume * effect)`` with
    ``effect = 0.7 + 0.6 * sin(position * pi)``. Bars above 0.1 intensity
    get a highlight cap.
    """
    n = bar_count(width)
    if n == 0:
        return []

    values = shape_bars(freq, n, sensitivity)
    bar_width = max(2.0, width / n - BAR_GAP)
    pitch = bar_width + BAR_GAP
    offset = (width - (n * pitch - BAR_GAP)) / 2.0
    radius = bar_width / 2.0

    commands = []
    for i, value in enumerate(values):
        value = float(value)
        position = i / n
        x = i * pitch + offset

        effect = 0.7 + math.sin(position * math.pi) * 0.6
        bar_height = max(4.0, value * height * 0.8 * volume * effect)
        top = height - bar_height

        commands.append(
            RoundedBar(
                x=x,
                top=top,
                width=bar_width,
                bottom=height,
                radius=radius,
                fill=color_for(theme, position, value),
                glow=Glow(theme.glow, 10.0 * value) if value > 0 else None,
            )
        )

        if value > 0.1:
            commands.append(Circle(x + radius, top, radius, theme.highlight))

    return commands


def smooth_closed_curve(points: list[Point], steps: int = 4) -> list[Point]:
    """
    Sample a closed quadratic curve through consecutive midpoints.

    Each input point is the control point of a quadratic segment running from
    the midpoint before it to the midpoint after it.
    """
    n = len(points)
    if n < 3:
        return list(points)

    pts = np.asarray(points, dtype=np.float64)
    nxt = np.roll(pts, -1, axis=0)
    prev = np.roll(pts, 1, axis=0)
    starts = (prev + pts) / 2.0
    ends = (pts + nxt) / 2.0

    t = np.arange(steps) / steps
    a = ((1 - t) ** 2)[None, :, None]
    b = (2 * (1 - t) * t)[None, :, None]
    c = (t ** 2)[None, :, None]
    curve = a * starts[:, None, :] + b * pts[:, None, :] + c * ends[:, None, :]

    return [tuple(p) for p in curve.reshape(-1, 2)]


def render_circular(
    freq: np.ndarray,
    theme: ColorTheme,
    width: float,
    height: float,
    now: float,
    sensitivity: float = 1.2,
    volume: float = 0.7,
    num_points: int = CIRCULAR_POINTS,
) -> list:
    """
    Radial burst around the canvas centre.

    Point distance is ``base + (v + 0.2 * sin(3a + 2t)) * base * 0.8 * volume``
    where ``t`` is wall-clock seconds, so the ring keeps rippling on its own.
    """
    cx, cy = width / 2.0, height / 2.0
    base_radius = min(width, height) * 0.35
    values = shape_circular(freq, num_points, sensitivity)

    commands = []

    core = RadialGradient(
        cx, cy, base_radius * 0.5,
        (
            ColorStop(0.0, theme.highlight),
            ColorStop(0.5, theme.palette[1]),
            ColorStop(1.0, theme.palette[0].with_alpha(0.1)),
        ),
    )
    commands.append(Circle(cx, cy, base_radius * 0.2, core, Glow(theme.glow, 20.0)))

    points = []
    for i, value in enumerate(values):
        angle = i / num_points * math.pi * 2
        ripple = 0.2 * math.sin(angle * 3 + now * 2)
        distance = base_radius + (float(value) + ripple) * base_radius * 0.8 * volume
        points.append((cx + math.cos(angle) * distance, cy + math.sin(angle) * distance))

    curve = tuple(smooth_closed_curve(points))
    commands.append(Polyline(curve, theme.palette[0], width=2.0, closed=True))
    commands.append(
        Polyline(
            curve,
            theme.palette[1].with_alpha(0.5),
            width=4.0,
            closed=True,
            glow=Glow(theme.glow, 12.0),
        )
    )

    for i, value in enumerate(values):
        value = float(value)
        if value <= 0:
            continue
        x, y = points[i]
        color = color_for(theme, i / num_points, value)
        commands.append(
            Line(cx, cy, x, y, color.with_alpha(color.a * value), width=1.0 + value * 2.0)
        )

    return commands


def _wave_points(
    samples: np.ndarray,
    width: float,
    center_y: float,
    gain: float,
) -> tuple[Point, ...]:
    data = np.asarray(samples, dtype=np.float64)
    xs = np.arange(len(data)) * (width / len(data))
    ys = center_y + (data / 128.0 - 1.0) * center_y * gain
    return tuple(zip(xs.tolist(), ys.tolist()))


def render_wave(
    time_data: np.ndarray,
    theme: ColorTheme,
    width: float,
    height: float,
    sensitivity: float = 1.5,
    volume: float = 0.7,
) -> list:
    """
    Two mirrored oscilloscope traces straight from the time-domain buffer.

    Sensitivity scales the raw sample amplitude here; there is no shaping pass.
    """
    if len(time_data) == 0:
        return []

    center_y = height / 2.0
    stops = tuple(ColorStop(offset, color) for offset, color in zip((0.0, 0.5, 1.0), theme.palette))
    gradient = LinearGradient(0.0, 0.0, width, 0.0, stops)
    faded = LinearGradient(
        0.0, 0.0, width, 0.0,
        tuple(ColorStop(s.offset, s.color.with_alpha(s.color.a * 0.5)) for s in stops),
    )
    gain = sensitivity * volume

    return [
        Polyline(
            _wave_points(time_data, width, center_y, gain),
            gradient,
            width=3.0,
            glow=Glow(theme.glow, 10.0),
        ),
        Polyline(_wave_points(time_data, width, center_y, -gain), faded, width=3.0),
    ]


def render_placeholder(
    theme: ColorTheme,
    width: float,
    height: float,
    now: float,
    hint: str = HINT_TEXT,
) -> list:
    """Breathing radial glow at the centre plus a hint label."""
    cx, cy = width / 2.0, height / 2.0
    pulse = 0.5 + math.sin(now * 2) * 0.1
    radius = width * 0.25 * pulse

    gradient = RadialGradient(
        cx, cy, radius,
        (
            ColorStop(0.0, theme.highlight.with_alpha(0.2)),
            ColorStop(0.7, theme.palette[1].with_alpha(0.1)),
            ColorStop(1.0, theme.palette[0].with_alpha(0.0)),
        ),
    )
    return [
        Circle(cx, cy, radius, gradient),
        Text(hint, cx, cy + 40, RGBA(255, 255, 255, 0.7), size=14),
    ]


class BackgroundEnergy:
    """
    Low-band energy follower for the animated backdrop.

    Averages the lowest 32 bins; eases toward that level while data flows and
    decays when it stops.
    """

    def __init__(self, bins: int = 32):
        self.bins = bins
        self.energy = 0.0

    def update(self, freq: np.ndarray) -> float:
        if len(freq) > 0:
            low = np.asarray(freq[: min(self.bins, len(freq))], dtype=np.float64)
            average = low.sum() / (len(low) * 255.0)
            self.energy = self.energy * 0.6 + average * 0.4
        else:
            self.energy *= 0.95
        return self.energy


# Backdrop orbs: (x, y) as fractions of the canvas, size fraction, color, reactivity.
_ORBS = (
    (0.85, 0.1, 0.5, RGBA(30, 136, 229, 0.2), 0.3),
    (0.1, 0.9, 0.4, RGBA(101, 31, 255, 0.2), 0.5),
    (0.8, 0.7, 0.32, RGBA(0, 191, 165, 0.1), 0.4),
)


def render_background(
    energy: float,
    is_playing: bool,
    width: float,
    height: float,
) -> list:
    """Dark gradient backdrop with soft orbs that swell with low-band energy."""
    commands = [
        Rect(
            0.0, 0.0, width, height,
            LinearGradient(
                0.0, 0.0, 0.0, height,
                (ColorStop(0.0, RGBA(14, 26, 45)), ColorStop(1.0, RGBA(9, 10, 20))),
            ),
        )
    ]
    for fx, fy, size, color, reactivity in _ORBS:
        scale = 1.0 + energy * reactivity if is_playing else 1.0
        radius = size * width * 0.5 * scale
        commands.append(
            Circle(
                fx * width,
                fy * height,
                radius,
                RadialGradient(
                    fx * width, fy * height, radius,
                    (ColorStop(0.0, color), ColorStop(1.0, color.with_alpha(0.0))),
                ),
            )
        )
    return commands

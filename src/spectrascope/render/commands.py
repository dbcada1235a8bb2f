"""
Draw commands.

Renderers emit ordered sequences of these plain records; a canvas backend
executes them. Coordinates are logical (CSS) pixels; the backend applies the
device pixel ratio set by ``SetTransform``.
"""

from dataclasses import dataclass, field

from spectrascope.core.themes import Color

Point = tuple[float, float]


@dataclass(frozen=True)
class ColorStop:
    offset: float
    color: Color


@dataclass(frozen=True)
class LinearGradient:
    """Gradient along the segment (x0, y0) -> (x1, y1)."""

    x0: float
    y0: float
    x1: float
    y1: float
    stops: tuple[ColorStop, ...]


@dataclass(frozen=True)
class RadialGradient:
    """Gradient from the centre (offset 0) out to ``radius`` (offset 1)."""

    cx: float
    cy: float
    radius: float
    stops: tuple[ColorStop, ...]


Paint = Color | LinearGradient | RadialGradient


@dataclass(frozen=True)
class Glow:
    """Soft shadow drawn under a shape."""

    color: Color
    blur: float


@dataclass(frozen=True)
class Clear:
    """Clear the whole backing store."""


@dataclass(frozen=True)
class SetTransform:
    """Absolute scale from logical pixels to backing-store pixels."""

    scale: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float
    fill: Paint


@dataclass(frozen=True)
class RoundedBar:
    """Bar standing on ``bottom`` with a rounded top of ``radius``."""

    x: float
    top: float
    width: float
    bottom: float
    radius: float
    fill: Paint
    glow: Glow | None = None


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    radius: float
    fill: Paint
    glow: Glow | None = None


@dataclass(frozen=True)
class Polyline:
    points: tuple[Point, ...]
    stroke: Paint
    width: float = 1.0
    closed: bool = False
    glow: Glow | None = None


@dataclass(frozen=True)
class Line:
    x0: float
    y0: float
    x1: float
    y1: float
    stroke: Paint
    width: float = 1.0


@dataclass(frozen=True)
class Text:
    text: str
    x: float
    y: float
    color: Color
    size: int = 14
    align: str = "center"


DrawCommand = Clear | SetTransform | Rect | RoundedBar | Circle | Polyline | Line | Text

# Shapes that carry visual geometry (as opposed to state/text commands).
GEOMETRY = (Rect, RoundedBar, Circle, Polyline, Line)


@dataclass
class Frame:
    """Commands produced for one tick, in draw order."""

    commands: list = field(default_factory=list)
    placeholder: bool = False

    def count(self, kind) -> int:
        return sum(1 for c in self.commands if isinstance(c, kind))

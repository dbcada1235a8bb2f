"""
Color themes and position/intensity color mapping.

A theme is either a small palette with highlight and glow colors, or a
hue sweep ("rainbow") that spreads the full color wheel across positions.
"""

import colorsys
from dataclasses import dataclass


@dataclass(frozen=True)
class RGBA:
    """RGB color with channels in [0, 255] and alpha in [0, 1]."""

    r: float
    g: float
    b: float
    a: float = 1.0

    def to_rgba(self) -> "RGBA":
        return self

    def to_rgb255(self) -> tuple[int, int, int]:
        return (
            int(round(min(max(self.r, 0.0), 255.0))),
            int(round(min(max(self.g, 0.0), 255.0))),
            int(round(min(max(self.b, 0.0), 255.0))),
        )

    def with_alpha(self, alpha: float) -> "RGBA":
        return RGBA(self.r, self.g, self.b, min(max(alpha, 0.0), 1.0))

    def css(self) -> str:
        return f"rgba({self.r:g}, {self.g:g}, {self.b:g}, {self.a:g})"


@dataclass(frozen=True)
class HSL:
    """HSL color: hue in degrees, saturation and lightness in percent."""

    h: float
    s: float
    l: float
    a: float = 1.0

    def to_rgba(self) -> RGBA:
        hue = (self.h % 360.0) / 360.0
        sat = min(max(self.s, 0.0), 100.0) / 100.0
        light = min(max(self.l, 0.0), 100.0) / 100.0
        r, g, b = colorsys.hls_to_rgb(hue, light, sat)
        return RGBA(r * 255.0, g * 255.0, b * 255.0, self.a)

    def to_rgb255(self) -> tuple[int, int, int]:
        return self.to_rgba().to_rgb255()

    def with_alpha(self, alpha: float) -> "HSL":
        return HSL(self.h, self.s, self.l, min(max(alpha, 0.0), 1.0))

    def css(self) -> str:
        if self.a >= 1.0:
            return f"hsl({self.h:g}, {self.s:g}%, {self.l:g}%)"
        return f"hsla({self.h:g}, {self.s:g}%, {self.l:g}%, {self.a:g})"


Color = RGBA | HSL


@dataclass(frozen=True)
class ColorTheme:
    """Immutable theme definition."""

    id: str
    name: str
    palette: tuple[RGBA, RGBA, RGBA]
    highlight: RGBA
    glow: RGBA
    hue_sweep: bool = False


THEMES: dict[str, ColorTheme] = {
    "blue": ColorTheme(
        id="blue",
        name="Blue",
        palette=(RGBA(137, 207, 240, 0.8), RGBA(190, 227, 248, 0.9), RGBA(137, 207, 240, 0.8)),
        highlight=RGBA(255, 255, 255, 0.8),
        glow=RGBA(255, 255, 255, 0.6),
    ),
    "purple": ColorTheme(
        id="purple",
        name="Purple",
        palette=(RGBA(149, 128, 255, 0.8), RGBA(187, 169, 255, 0.9), RGBA(149, 128, 255, 0.8)),
        highlight=RGBA(240, 230, 255, 0.8),
        glow=RGBA(180, 160, 255, 0.6),
    ),
    "green": ColorTheme(
        id="green",
        name="Green",
        palette=(RGBA(97, 205, 132, 0.8), RGBA(155, 236, 183, 0.9), RGBA(97, 205, 132, 0.8)),
        highlight=RGBA(220, 255, 230, 0.8),
        glow=RGBA(130, 230, 160, 0.6),
    ),
    "orange": ColorTheme(
        id="orange",
        name="Orange",
        palette=(RGBA(255, 146, 43, 0.8), RGBA(255, 186, 113, 0.9), RGBA(255, 146, 43, 0.8)),
        highlight=RGBA(255, 240, 220, 0.8),
        glow=RGBA(255, 170, 100, 0.6),
    ),
    "pink": ColorTheme(
        id="pink",
        name="Pink",
        palette=(RGBA(255, 105, 180, 0.8), RGBA(255, 182, 219, 0.9), RGBA(255, 105, 180, 0.8)),
        highlight=RGBA(255, 230, 242, 0.8),
        glow=RGBA(255, 150, 200, 0.6),
    ),
    "rainbow": ColorTheme(
        id="rainbow",
        name="Rainbow",
        palette=(RGBA(255, 0, 0, 0.8), RGBA(0, 255, 0, 0.8), RGBA(0, 0, 255, 0.8)),
        highlight=RGBA(255, 255, 255, 0.8),
        glow=RGBA(255, 255, 255, 0.6),
        hue_sweep=True,
    ),
}

DEFAULT_THEME = "blue"


def theme_ids() -> list[str]:
    """Registry ids in display order."""
    return list(THEMES)


def get_theme(theme: "ColorTheme | str") -> ColorTheme:
    """
    Resolve a theme id (or pass a theme through).

    Raises:
        ValueError: If the id is not in the registry.
    """
    if isinstance(theme, ColorTheme):
        return theme
    try:
        return THEMES[theme]
    except KeyError:
        raise ValueError(
            f"Unknown color theme {theme!r}; expected one of {', '.join(THEMES)}"
        ) from None


def color_for(theme: "ColorTheme | str", position: float, intensity: float) -> Color:
    """
    Color for a visual element at ``position`` with the given ``intensity``.

    Args:
        theme: Theme or theme id.
        position: Element position along the layout, in [0, 1].
        intensity: Shaped intensity, in [0, 1].

    Returns:
        ``HSL`` for hue-sweep themes, ``RGBA`` for palette themes.
    """
    selected = get_theme(theme)

    if selected.hue_sweep:
        return HSL(
            h=position * 360.0,
            s=70.0 + 30.0 * intensity,
            l=50.0 + 20.0 * intensity,
        )

    base = selected.palette[0]
    position_scale = 0.7 + 0.6 * position
    intensity_scale = 0.7 + 0.3 * intensity

    return RGBA(
        r=min(255.0, base.r * position_scale),
        g=min(255.0, base.g * intensity_scale),
        b=min(255.0, base.b * intensity_scale),
        a=0.7 + 0.3 * intensity,
    )


def dynamic_color(
    intensity: float,
    hue_start: float = 200.0,
    hue_end: float = 240.0,
) -> HSL:
    """Interpolate hue between two angles by intensity (theme-less variant)."""
    return HSL(
        h=hue_start + (hue_end - hue_start) * intensity,
        s=70.0 + 30.0 * intensity,
        l=60.0 + 20.0 * intensity,
    )

"""
Canvas surface and draw-command backends.

The canvas tracks its logical (CSS) size, device pixel ratio and the
backing-store size derived from them. Backends execute draw commands:
``RecordingBackend`` keeps them for inspection, ``PygameBackend`` rasterizes
them with pygame and blooms the glow layer with Pillow.
"""

import math
from pathlib import Path
from typing import Union

import numpy as np
import pygame
from PIL import Image, ImageFilter

from spectrascope.core.themes import RGBA, HSL
from spectrascope.render.commands import (
    Circle,
    Clear,
    Line,
    LinearGradient,
    Polyline,
    RadialGradient,
    Rect,
    RoundedBar,
    SetTransform,
    Text,
)


class RecordingBackend:
    """Keeps every command of every frame; each ``Clear`` starts a new frame."""

    def __init__(self):
        self.frames: list[list] = []
        self.size = (0, 0)
        self.presented = 0

    def resize(self, width: int, height: int) -> None:
        self.size = (width, height)

    def execute(self, command) -> None:
        if isinstance(command, Clear) or not self.frames:
            self.frames.append([])
        self.frames[-1].append(command)

    def present(self) -> None:
        self.presented += 1

    @property
    def last_frame(self) -> list:
        return self.frames[-1] if self.frames else []


class Canvas:
    """
    Drawing surface with high-DPI backing store.

    ``width``/``height`` are backing-store pixels
    (``client size * device_pixel_ratio``); ``style_width``/``style_height``
    are the unscaled logical sizes.
    """

    def __init__(
        self,
        backend=None,
        client_width: int = 0,
        client_height: int = 0,
        device_pixel_ratio: float = 1.0,
    ):
        self.backend = backend if backend is not None else RecordingBackend()
        self.width = 0
        self.height = 0
        self.style_width = 0
        self.style_height = 0
        self.device_pixel_ratio = device_pixel_ratio or 1.0
        self.detached = False
        self.resize(client_width, client_height, device_pixel_ratio)

    @property
    def client_size(self) -> tuple[int, int]:
        return (self.style_width, self.style_height)

    def resize(
        self,
        client_width: int,
        client_height: int,
        device_pixel_ratio: float | None = None,
    ) -> None:
        """Resynchronize backing-store dimensions with the container size."""
        if device_pixel_ratio:
            self.device_pixel_ratio = device_pixel_ratio
        dpr = self.device_pixel_ratio

        self.style_width = max(0, int(client_width))
        self.style_height = max(0, int(client_height))
        self.width = int(self.style_width * dpr)
        self.height = int(self.style_height * dpr)
        self.backend.resize(self.width, self.height)

    def detach(self) -> None:
        """Mark the canvas as gone; drawing afterwards is an error."""
        self.detached = True

    def _check_attached(self) -> None:
        if self.detached:
            raise RuntimeError("Cannot draw into a detached canvas")

    def begin_frame(self) -> None:
        """Clear and set the device-pixel-ratio transform for a new frame."""
        self._check_attached()
        self.backend.execute(Clear())
        self.backend.execute(SetTransform(self.device_pixel_ratio))

    def draw(self, commands) -> None:
        self._check_attached()
        for command in commands:
            self.backend.execute(command)

    def end_frame(self) -> None:
        self._check_attached()
        self.backend.present()


def _rgba(color) -> tuple[int, int, int, int]:
    """Color value -> pygame RGBA tuple."""
    rgba = color.to_rgba() if isinstance(color, (RGBA, HSL)) else RGBA(*color)
    r, g, b = rgba.to_rgb255()
    return (r, g, b, int(round(min(max(rgba.a, 0.0), 1.0) * 255)))


def _lerp_color(c0, c1, t: float) -> tuple[int, int, int, int]:
    return tuple(int(round(a + (b - a) * t)) for a, b in zip(c0, c1))


def _sample_stops(stops, t: float) -> tuple[int, int, int, int]:
    """Color at offset ``t`` along a gradient's stops."""
    colors = [(s.offset, _rgba(s.color)) for s in stops]
    if t <= colors[0][0]:
        return colors[0][1]
    for (o0, c0), (o1, c1) in zip(colors, colors[1:]):
        if t <= o1:
            span = o1 - o0
            return _lerp_color(c0, c1, 0.0 if span <= 0 else (t - o0) / span)
    return colors[-1][1]


class PygameBackend:
    """
    Rasterizes draw commands onto a pygame surface.

    Shapes and glows go to separate alpha layers. On ``present()`` the glow
    layer is blurred at reduced resolution with Pillow and composited under
    the shapes onto the target surface.
    """

    def __init__(
        self,
        surface: pygame.Surface | None = None,
        background: tuple[int, int, int] = (5, 5, 15),
        glow_enabled: bool = True,
        glow_downscale: int = 4,
    ):
        self.background = background
        self.glow_enabled = glow_enabled
        self.glow_downscale = max(1, glow_downscale)
        self.scale = 1.0
        self.surface = surface
        self._owns_surface = surface is None
        self._fonts: dict[int, pygame.font.Font] = {}
        self._glow_blur = 0.0
        self._shapes: pygame.Surface | None = None
        self._glow: pygame.Surface | None = None
        if surface is not None:
            self._allocate_layers(surface.get_size())

    def bind(self, surface: pygame.Surface) -> None:
        """Draw onto ``surface`` (e.g. the display surface after a resize)."""
        self.surface = surface
        self._owns_surface = False
        self._allocate_layers(surface.get_size())

    def _allocate_layers(self, size: tuple[int, int]) -> None:
        w, h = max(1, size[0]), max(1, size[1])
        self._shapes = pygame.Surface((w, h), pygame.SRCALPHA)
        self._glow = pygame.Surface((w, h), pygame.SRCALPHA)

    def resize(self, width: int, height: int) -> None:
        if self._owns_surface:
            self.surface = pygame.Surface((max(1, width), max(1, height)), pygame.SRCALPHA)
            self._allocate_layers((width, height))
        elif self.surface is not None and self._shapes.get_size() != self.surface.get_size():
            self._allocate_layers(self.surface.get_size())

    # -- command dispatch ----------------------------------------------------

    def execute(self, command) -> None:
        if isinstance(command, Clear):
            if self._shapes is None:
                return
            self._shapes.fill((0, 0, 0, 0))
            self._glow.fill((0, 0, 0, 0))
            self._glow_blur = 0.0
        elif isinstance(command, SetTransform):
            self.scale = command.scale
        elif isinstance(command, Rect):
            self._draw_rect(command)
        elif isinstance(command, RoundedBar):
            self._draw_bar(command)
        elif isinstance(command, Circle):
            self._draw_circle(command)
        elif isinstance(command, Polyline):
            self._draw_polyline(command)
        elif isinstance(command, Line):
            self._draw_line(command)
        elif isinstance(command, Text):
            self._draw_text(command)
        else:
            raise TypeError(f"Unsupported draw command: {type(command).__name__}")

    def _blit(self, layer: pygame.Surface, x0: float, y0: float, x1: float, y1: float, paint_fn):
        """Draw into a bbox-sized temporary surface and alpha-blend it onto ``layer``."""
        left, top = int(math.floor(x0)) - 1, int(math.floor(y0)) - 1
        w = int(math.ceil(x1)) - left + 2
        h = int(math.ceil(y1)) - top + 2
        if w <= 0 or h <= 0:
            return
        tmp = pygame.Surface((w, h), pygame.SRCALPHA)
        paint_fn(tmp, left, top)
        layer.blit(tmp, (left, top))

    def _add_glow(self, glow, x0, y0, x1, y1, paint_fn) -> None:
        if not self.glow_enabled or glow is None or glow.blur <= 0:
            return
        self._glow_blur = max(self._glow_blur, glow.blur)
        pad = glow.blur * self.scale
        self._blit(self._glow, x0 - pad, y0 - pad, x1 + pad, y1 + pad, paint_fn)

    def _solid(self, paint):
        """Flat color for a paint; gradients are sampled at their midpoint."""
        if isinstance(paint, LinearGradient):
            return _sample_stops(paint.stops, 0.5)
        if isinstance(paint, RadialGradient):
            return _sample_stops(paint.stops, 0.0)
        return _rgba(paint)

    def _draw_rect(self, cmd: Rect) -> None:
        s = self.scale
        x0, y0, x1, y1 = cmd.x * s, cmd.y * s, (cmd.x + cmd.width) * s, (cmd.y + cmd.height) * s

        def paint(tmp, left, top):
            w, h = tmp.get_size()
            if isinstance(cmd.fill, LinearGradient):
                g = cmd.fill
                length = math.hypot((g.x1 - g.x0) * s, (g.y1 - g.y0) * s) or 1.0
                vertical = abs(g.y1 - g.y0) >= abs(g.x1 - g.x0)
                for i in range(h if vertical else w):
                    pos = (top + i) if vertical else (left + i)
                    origin = (g.y0 if vertical else g.x0) * s
                    color = _sample_stops(g.stops, min(max((pos - origin) / length, 0.0), 1.0))
                    if vertical:
                        pygame.draw.line(tmp, color, (0, i), (w, i))
                    else:
                        pygame.draw.line(tmp, color, (i, 0), (i, h))
            else:
                tmp.fill(self._solid(cmd.fill))

        self._blit(self._shapes, x0, y0, x1, y1, paint)

    def _draw_bar(self, cmd: RoundedBar) -> None:
        s = self.scale
        x0, y0 = cmd.x * s, cmd.top * s
        x1, y1 = (cmd.x + cmd.width) * s, cmd.bottom * s
        radius = int(cmd.radius * s)

        def shape(color):
            def paint(tmp, left, top):
                rect = pygame.Rect(round(x0 - left), round(y0 - top), max(1, round(x1 - x0)), max(1, round(y1 - y0)))
                pygame.draw.rect(
                    tmp, color, rect,
                    border_top_left_radius=radius,
                    border_top_right_radius=radius,
                )
            return paint

        self._add_glow(cmd.glow, x0, y0, x1, y1, shape(_rgba(cmd.glow.color)) if cmd.glow else None)
        self._blit(self._shapes, x0, y0, x1, y1, shape(self._solid(cmd.fill)))

    def _draw_circle(self, cmd: Circle) -> None:
        s = self.scale
        cx, cy, r = cmd.cx * s, cmd.cy * s, cmd.radius * s
        if r <= 0:
            return

        def paint(tmp, left, top):
            center = (cx - left, cy - top)
            if isinstance(cmd.fill, RadialGradient):
                steps = max(2, min(32, int(r)))
                for k in range(steps, 0, -1):
                    t = k / steps
                    pygame.draw.circle(tmp, _sample_stops(cmd.fill.stops, t), center, max(1, r * t))
            else:
                pygame.draw.circle(tmp, self._solid(cmd.fill), center, max(1, r))

        def glow_paint(tmp, left, top):
            pygame.draw.circle(tmp, _rgba(cmd.glow.color), (cx - left, cy - top), max(1, r))

        if cmd.glow is not None:
            self._add_glow(cmd.glow, cx - r, cy - r, cx + r, cy + r, glow_paint)
        self._blit(self._shapes, cx - r, cy - r, cx + r, cy + r, paint)

    def _draw_polyline(self, cmd: Polyline) -> None:
        if len(cmd.points) < 2:
            return
        s = self.scale
        pts = np.asarray(cmd.points, dtype=np.float64) * s
        x0, y0 = pts.min(axis=0) - cmd.width * s
        x1, y1 = pts.max(axis=0) + cmd.width * s
        width = max(1, int(round(cmd.width * s)))

        def stroke(paint_value):
            def paint(tmp, left, top):
                local = [(x - left, y - top) for x, y in pts.tolist()]
                if isinstance(paint_value, LinearGradient):
                    g = paint_value
                    span = (g.x1 - g.x0) * s or 1.0
                    segments = list(zip(local, local[1:]))
                    if cmd.closed:
                        segments.append((local[-1], local[0]))
                    for a, b in segments:
                        t = ((a[0] + b[0]) / 2 + left - g.x0 * s) / span
                        color = _sample_stops(g.stops, min(max(t, 0.0), 1.0))
                        pygame.draw.line(tmp, color, a, b, width)
                else:
                    pygame.draw.lines(tmp, _rgba(paint_value), cmd.closed, local, width)
            return paint

        if cmd.glow is not None:
            self._add_glow(cmd.glow, x0, y0, x1, y1, stroke(cmd.glow.color))
        self._blit(self._shapes, x0, y0, x1, y1, stroke(cmd.stroke))

    def _draw_line(self, cmd: Line) -> None:
        s = self.scale
        a = (cmd.x0 * s, cmd.y0 * s)
        b = (cmd.x1 * s, cmd.y1 * s)
        pad = cmd.width * s
        width = max(1, int(round(cmd.width * s)))
        color = self._solid(cmd.stroke)

        def paint(tmp, left, top):
            pygame.draw.line(tmp, color, (a[0] - left, a[1] - top), (b[0] - left, b[1] - top), width)

        self._blit(
            self._shapes,
            min(a[0], b[0]) - pad, min(a[1], b[1]) - pad,
            max(a[0], b[0]) + pad, max(a[1], b[1]) + pad,
            paint,
        )

    def _font(self, size: int) -> pygame.font.Font:
        if size not in self._fonts:
            if not pygame.font.get_init():
                pygame.font.init()
            self._fonts[size] = pygame.font.Font(None, size)
        return self._fonts[size]

    def _draw_text(self, cmd: Text) -> None:
        # pygame's default font renders small; 1.4x matches CSS pixel sizes.
        font = self._font(max(1, int(cmd.size * self.scale * 1.4)))
        rgba = _rgba(cmd.color)
        rendered = font.render(cmd.text, True, rgba[:3])
        rendered.set_alpha(rgba[3])

        x, y = cmd.x * self.scale, cmd.y * self.scale
        w, h = rendered.get_size()
        if cmd.align == "center":
            x -= w / 2
        elif cmd.align == "right":
            x -= w
        self._shapes.blit(rendered, (int(x), int(y - h / 2)))

    # -- compositing ---------------------------------------------------------

    def _blurred_glow(self) -> pygame.Surface:
        size = self._glow.get_size()
        factor = self.glow_downscale
        small = (max(1, size[0] // factor), max(1, size[1] // factor))

        img = Image.frombytes("RGBA", size, pygame.image.tobytes(self._glow, "RGBA"))
        img = img.resize(small, Image.BILINEAR)
        img = img.filter(ImageFilter.GaussianBlur(radius=max(1.0, self._glow_blur * self.scale / factor)))
        img = img.resize(size, Image.BILINEAR)

        return pygame.image.frombytes(img.tobytes(), size, "RGBA")

    def present(self) -> None:
        if self.surface is None or self._shapes is None:
            return
        self.surface.fill(self.background)
        if self.glow_enabled and self._glow_blur > 0:
            self.surface.blit(self._blurred_glow(), (0, 0))
        self.surface.blit(self._shapes, (0, 0))

    def to_image(self) -> Image.Image:
        """Current surface as a Pillow image."""
        size = self.surface.get_size()
        return Image.frombytes("RGBA", size, pygame.image.tobytes(self.surface, "RGBA"))

    def save_png(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.to_image().convert("RGB").save(path, format="PNG")
        return path

# -*- coding: utf-8 -*-
"""
Raster drawing surface.

Strokes are baked into an RGBA buffer as they are drawn; only the last point of the
stroke in progress is kept, and it is dropped when the pointer is released.
The buffer is sized to the display rect times the device pixel ratio, and every
coordinate handed to the surface is in display space.
"""
from __future__ import annotations
import math
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, Optional, Protocol, Tuple, runtime_checkable
from PIL import Image, ImageColor, ImageDraw

from drawpad.events import EventSource, PointerEvent, Rect
from drawpad.snapshot import encode_png_data_url

MAX_EXPORT_DIMENSION = 1024
EXPORT_BACKGROUND = (0, 0, 0)
DEFAULT_COLOR = "#FFFFFF"
DEFAULT_LINE_WIDTH = 5.0

Point = Tuple[float, float]
RGBA = Tuple[int, int, int, int]


@runtime_checkable
class SurfaceHandle(Protocol):
    """What the owner of a surface is allowed to do with it."""

    def clear(self) -> None:
        ...

    def export_snapshot(self) -> Optional[str]:
        ...


def _round_half_up(v: float) -> int:
    return int(math.floor(v + 0.5))


def fit_within(width: float, height: float, limit: int = MAX_EXPORT_DIMENSION) -> Tuple[int, int]:
    """
    Scale (width, height) down so neither exceeds limit, keeping the aspect ratio.
    The larger side becomes exactly limit; sizes already inside the bound are kept.
    Fractional results are truncated, as a canvas width attribute would be.
    """
    tw, th = width, height
    if tw > limit or th > limit:
        if tw > th:
            th = _round_half_up(th * limit / tw)
            tw = limit
        else:
            tw = _round_half_up(tw * limit / th)
            th = limit
    return int(tw), int(th)


def _parse_color(color) -> Optional[RGBA]:
    if not isinstance(color, str):
        return None
    try:
        return ImageColor.getcolor(color.strip(), "RGBA")  # type: ignore[return-value]
    except ValueError:
        return None


def _valid_width(width) -> Optional[float]:
    try:
        w = float(width)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(w) or w <= 0:
        return None
    return w


class _Handle:
    __slots__ = ("_surface",)

    def __init__(self, surface: "DrawingSurface") -> None:
        self._surface = surface

    def clear(self) -> None:
        self._surface.clear()

    def export_snapshot(self) -> Optional[str]:
        return self._surface.export_snapshot()


class DrawingSurface:
    def __init__(self, color: str = DEFAULT_COLOR, line_width: float = DEFAULT_LINE_WIDTH) -> None:
        self._color: RGBA = _parse_color(color) or (255, 255, 255, 255)
        self._line_width: float = _valid_width(line_width) or DEFAULT_LINE_WIDTH
        self.dpr: float = 1.0
        self.rect = Rect()
        # None until mount(); an unmounted surface has no rendering context.
        self._buffer: Optional[Image.Image] = None
        self._is_drawing = False
        self._has_ink = False
        self._last_point: Optional[Point] = None

    # ------------------------------ state ------------------------------ #
    @property
    def is_mounted(self) -> bool:
        return self._buffer is not None

    @property
    def is_drawing(self) -> bool:
        return self._is_drawing

    @property
    def has_ink(self) -> bool:
        return self._has_ink

    @property
    def color(self) -> RGBA:
        return self._color

    @property
    def line_width(self) -> float:
        return self._line_width

    @property
    def backing_size(self) -> Tuple[int, int]:
        if self._buffer is None:
            return (0, 0)
        return self._buffer.size

    @property
    def display_size(self) -> Tuple[float, float]:
        w, h = self.backing_size
        return (w / self.dpr, h / self.dpr)

    # ------------------------------ setup ------------------------------ #
    def mount(self, rect: Rect, device_pixel_ratio: Optional[float] = None) -> None:
        """Allocate the backing buffer for a surface displayed at rect. Only the first call counts."""
        if self._buffer is not None:
            return
        dpr = float(device_pixel_ratio or 1)
        if not math.isfinite(dpr) or dpr <= 0:
            dpr = 1.0
        self.dpr = dpr
        self.rect = rect
        size = (max(0, int(rect.width * dpr)), max(0, int(rect.height * dpr)))
        self._buffer = Image.new("RGBA", size, (0, 0, 0, 0))

    def set_offset(self, left: float, top: float) -> None:
        # The surface moved in the viewport (scroll/layout); size and DPR are unchanged.
        self.rect = replace(self.rect, left=left, top=top)

    def set_style(self, color: Optional[str] = None, line_width: Optional[float] = None) -> None:
        """Values the rasterizer cannot use are ignored and the previous ones kept."""
        if color is not None:
            parsed = _parse_color(color)
            if parsed is not None:
                self._color = parsed
        if line_width is not None:
            w = _valid_width(line_width)
            if w is not None:
                self._line_width = w

    def handle(self) -> SurfaceHandle:
        return _Handle(self)

    @contextmanager
    def attach(self, source: EventSource) -> Iterator[SurfaceHandle]:
        """Subscribe the input handlers on source for the duration of the block."""
        bindings = (
            ("mousedown", self.on_pointer_down),
            ("mousemove", self.on_pointer_move),
            ("mouseup", self.on_pointer_up),
            ("mouseleave", self.on_pointer_up),
            ("touchstart", self.on_pointer_down),
            ("touchmove", self.on_pointer_move),
            ("touchend", self.on_pointer_up),
            ("touchcancel", self.on_pointer_up),
        )
        for event_type, handler in bindings:
            source.add_listener(event_type, handler)
        try:
            yield self.handle()
        finally:
            for event_type, handler in bindings:
                source.remove_listener(event_type, handler)

    # ------------------------------ input ------------------------------ #
    def _local_point(self, event: PointerEvent) -> Point:
        cx, cy = event.client_point()
        return (cx - self.rect.left, cy - self.rect.top)

    def on_pointer_down(self, event: PointerEvent) -> None:
        if self._buffer is None:
            return
        self._last_point = self._local_point(event)
        self._is_drawing = True
        event.prevent_default()

    def on_pointer_move(self, event: PointerEvent) -> None:
        if not self._is_drawing or self._buffer is None:
            return
        point = self._local_point(event)
        previous = self._last_point if self._last_point is not None else point
        self._last_point = point
        self._stroke_segment(previous, point)
        self._has_ink = True
        event.prevent_default()

    def on_pointer_up(self, event: Optional[PointerEvent] = None) -> None:
        if self._buffer is None:
            return
        self._last_point = None
        self._is_drawing = False

    # ------------------------------ raster ------------------------------ #
    def _to_backing(self, p: Point) -> Point:
        return (p[0] * self.dpr, p[1] * self.dpr)

    def _stroke_segment(self, p0: Point, p1: Point) -> None:
        if self._buffer is None or 0 in self._buffer.size:
            return
        width_px = self._line_width * self.dpr
        r = width_px / 2.0
        a = self._to_backing(p0)
        b = self._to_backing(p1)
        # Rasterize onto a transparent layer covering the segment, then blend it
        # source-over so translucent ink never replaces what is already there.
        bw, bh = self._buffer.size
        x0 = max(0, int(math.floor(min(a[0], b[0]) - r)) - 1)
        y0 = max(0, int(math.floor(min(a[1], b[1]) - r)) - 1)
        x1 = min(bw, int(math.ceil(max(a[0], b[0]) + r)) + 2)
        y1 = min(bh, int(math.ceil(max(a[1], b[1]) + r)) + 2)
        if x1 <= x0 or y1 <= y0:
            return
        layer = Image.new("RGBA", (x1 - x0, y1 - y0), (0, 0, 0, 0))
        draw = ImageDraw.Draw(layer)
        la = (a[0] - x0, a[1] - y0)
        lb = (b[0] - x0, b[1] - y0)
        if la != lb:
            draw.line([la, lb], fill=self._color, width=max(1, _round_half_up(width_px)))
        # Round caps and joins.
        for x, y in (la, lb):
            draw.ellipse([x - r, y - r, x + r, y + r], fill=self._color)
        self._buffer.alpha_composite(layer, dest=(x0, y0))

    def clear(self) -> None:
        """Erase the whole drawing. Safe to call on an empty or unmounted surface."""
        self._has_ink = False
        if self._buffer is None:
            return
        w, h = self.display_size
        bw, bh = self._buffer.size
        box = (0, 0, min(bw, math.ceil(w * self.dpr)), min(bh, math.ceil(h * self.dpr)))
        if box[2] > 0 and box[3] > 0:
            self._buffer.paste((0, 0, 0, 0), box)

    def export_snapshot(self) -> Optional[str]:
        """
        PNG data URL of the drawing on an opaque black background, at most
        MAX_EXPORT_DIMENSION on each side. None when there is nothing to export.
        """
        if not self._has_ink or self._buffer is None:
            return None
        target = fit_within(*self.display_size)
        if target[0] <= 0 or target[1] <= 0:
            return None
        out = Image.new("RGB", target, EXPORT_BACKGROUND)
        scaled = self._buffer.resize(target, Image.Resampling.LANCZOS)
        out.paste(scaled, (0, 0), scaled)
        return encode_png_data_url(out)

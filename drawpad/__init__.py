"""
Freehand drawing pad with a generative-AI relay.
"""

from .events import EventSource, PointerEvent, Rect, TouchPoint
from .surface import DrawingSurface, SurfaceHandle, fit_within

__all__ = [
    "DrawingSurface",
    "EventSource",
    "PointerEvent",
    "Rect",
    "SurfaceHandle",
    "TouchPoint",
    "fit_within",
]

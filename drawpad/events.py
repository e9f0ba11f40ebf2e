from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple

MOUSE_EVENTS = ("mousedown", "mousemove", "mouseup", "mouseleave")
TOUCH_EVENTS = ("touchstart", "touchmove", "touchend", "touchcancel")


@dataclass(frozen=True)
class Rect:
    """Bounding box of the surface in viewport coordinates."""
    left: float = 0.0
    top: float = 0.0
    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True)
class TouchPoint:
    client_x: float
    client_y: float


@dataclass
class PointerEvent:
    """
    A mouse or touch event in viewport coordinates.
    Mouse events carry client_x/client_y; touch events carry the active touches,
    of which only the first is ever read.
    """
    type: str
    client_x: float = 0.0
    client_y: float = 0.0
    touches: List[TouchPoint] = field(default_factory=list)
    default_prevented: bool = False

    @property
    def is_touch(self) -> bool:
        return self.type in TOUCH_EVENTS

    def prevent_default(self) -> None:
        self.default_prevented = True

    def client_point(self) -> Tuple[float, float]:
        if not self.is_touch:
            return (self.client_x, self.client_y)
        if self.touches:
            first = self.touches[0]
            return (first.client_x, first.client_y)
        return (0.0, 0.0)


Handler = Callable[[PointerEvent], None]


class EventSource:
    """Event target for a surface. Dispatch is synchronous and in arrival order."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Handler]] = defaultdict(list)

    def add_listener(self, event_type: str, handler: Handler) -> None:
        handlers = self._listeners[event_type]
        if handler not in handlers:
            handlers.append(handler)

    def remove_listener(self, event_type: str, handler: Handler) -> None:
        handlers = self._listeners.get(event_type)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event_type: str) -> int:
        return len(self._listeners.get(event_type, ()))

    def dispatch(self, event: PointerEvent) -> PointerEvent:
        # Copy so a handler detaching itself does not skip its neighbours.
        for handler in list(self._listeners.get(event.type, ())):
            handler(event)
        return event

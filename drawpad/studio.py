# -*- coding: utf-8 -*-
"""
Client side of the drawing pad: toolbar state, Clear and Generate.

DrawingPad owns the view state the page renders (loading flag, error text,
generated picture) and talks to the surface only through its handle.
"""
from __future__ import annotations
from typing import Any, Dict, Optional
import httpx

from drawpad.snapshot import PNG_DATA_URL_PREFIX, strip_data_url_header
from drawpad.surface import DrawingSurface, SurfaceHandle

EMPTY_CANVAS_MESSAGE = "The canvas is empty. Draw something first!"
UNKNOWN_ERROR_MESSAGE = "An unknown error occurred."
MIN_LINE_WIDTH = 1
MAX_LINE_WIDTH = 50


class RelayError(Exception):
    """The relay answered, but not with a result."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RelayClient:
    """Thin async client for the relay's /api routes."""

    def __init__(self, client: httpx.AsyncClient) -> None:
        self._client = client

    async def _post(self, path: str, body: Dict[str, Any]) -> str:
        resp = await self._client.post(path, json=body)
        try:
            data = resp.json()
        except ValueError:
            data = None
        if resp.is_error:
            msg = data.get("error") if isinstance(data, dict) else None
            raise RelayError(str(msg or resp.reason_phrase or f"HTTP {resp.status_code}"), resp.status_code)
        if not isinstance(data, dict) or not isinstance(data.get("output"), str):
            raise RelayError("relay response has no output", resp.status_code)
        return data["output"]

    async def generate(self, prompt: str) -> str:
        return await self._post("/api/generate", {"prompt": prompt})

    async def generate_from_sketch(self, image: str, prompt: Optional[str] = None) -> str:
        body: Dict[str, Any] = {"image": image}
        if prompt:
            body["prompt"] = prompt
        return await self._post("/api/sketch", body)


class DrawingPad:
    def __init__(self, surface: DrawingSurface, relay: RelayClient, *, prompt: Optional[str] = None) -> None:
        self._surface = surface
        self._canvas: SurfaceHandle = surface.handle()
        self.relay = relay
        self.prompt = prompt
        self.color = "#FFFFFF"
        self.line_width = 5
        self.is_loading = False
        self.error: Optional[str] = None
        self.generated_image: Optional[str] = None
        surface.set_style(color=self.color, line_width=self.line_width)

    def set_color(self, color: str) -> None:
        if self.is_loading:
            return
        self.color = color
        self._surface.set_style(color=color)

    def set_line_width(self, width: int) -> None:
        if self.is_loading:
            return
        self.line_width = max(MIN_LINE_WIDTH, min(MAX_LINE_WIDTH, int(width)))
        self._surface.set_style(line_width=self.line_width)

    def clear(self) -> None:
        if self.is_loading:
            return
        self._canvas.clear()

    async def generate(self) -> None:
        if self.is_loading:
            return
        data_url = self._canvas.export_snapshot()
        if not data_url:
            self.error = EMPTY_CANVAS_MESSAGE
            return

        self.is_loading = True
        self.error = None
        self.generated_image = None
        try:
            output = await self.relay.generate_from_sketch(strip_data_url_header(data_url), self.prompt)
            self.generated_image = PNG_DATA_URL_PREFIX + output
        except Exception as e:
            # Any failure reaching or reading the relay is shown, never raised.
            self.error = str(e) or UNKNOWN_ERROR_MESSAGE
        finally:
            self.is_loading = False

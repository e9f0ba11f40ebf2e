import asyncio
import json

import httpx
import pytest

from drawpad import main
from drawpad.events import EventSource, PointerEvent, Rect
from drawpad.snapshot import PNG_DATA_URL_PREFIX
from drawpad.studio import (
    EMPTY_CANVAS_MESSAGE,
    UNKNOWN_ERROR_MESSAGE,
    DrawingPad,
    RelayClient,
    RelayError,
)
from drawpad.surface import DrawingSurface


def _surface() -> DrawingSurface:
    surface = DrawingSurface()
    surface.mount(Rect(0, 0, 120, 80), 2)
    return surface


def _draw(surface: DrawingSurface) -> None:
    source = EventSource()
    with surface.attach(source):
        source.dispatch(PointerEvent("mousedown", client_x=10, client_y=10))
        source.dispatch(PointerEvent("mousemove", client_x=40, client_y=30))
        source.dispatch(PointerEvent("mouseup"))


def _run_pad(handler, steps, surface=None):
    """Run steps(pad) against a relay answered by handler; returns (pad, requests)."""
    requests = []

    def recording(request):
        requests.append(request)
        return handler(request)

    async def scenario():
        transport = httpx.MockTransport(recording)
        async with httpx.AsyncClient(transport=transport, base_url="http://relay") as http:
            pad = DrawingPad(surface or _surface(), RelayClient(http))
            await steps(pad)
            return pad

    return asyncio.run(scenario()), requests


def _ok(output="X"):
    return lambda request: httpx.Response(200, json={"output": output})


def test_generate_on_empty_canvas_makes_no_request():
    async def steps(pad):
        await pad.generate()

    pad, requests = _run_pad(_ok(), steps)
    assert pad.error == EMPTY_CANVAS_MESSAGE
    assert pad.generated_image is None
    assert requests == []


def test_successful_generate_shows_image_and_clears_error():
    surface = _surface()

    async def steps(pad):
        await pad.generate()
        assert pad.error == EMPTY_CANVAS_MESSAGE
        _draw(surface)
        await pad.generate()

    pad, requests = _run_pad(_ok("X"), steps, surface)
    assert pad.error is None
    assert pad.generated_image == "data:image/png;base64,X"
    assert not pad.is_loading
    assert len(requests) == 1
    assert requests[0].url.path == "/api/sketch"
    body = json.loads(requests[0].content)
    assert not body["image"].startswith("data:")
    assert "prompt" not in body


def test_draw_clear_generate_is_treated_as_empty():
    surface = _surface()

    async def steps(pad):
        _draw(surface)
        pad.clear()
        await pad.generate()

    pad, requests = _run_pad(_ok(), steps, surface)
    assert pad.error == EMPTY_CANVAS_MESSAGE
    assert requests == []


def test_relay_error_message_is_shown():
    surface = _surface()
    _draw(surface)

    async def steps(pad):
        await pad.generate()

    handler = lambda request: httpx.Response(500, json={"error": "quota exceeded"})  # noqa: E731
    pad, _ = _run_pad(handler, steps, surface)
    assert pad.error == "quota exceeded"
    assert pad.generated_image is None
    assert not pad.is_loading


def test_relay_error_without_body_uses_http_reason():
    surface = _surface()
    _draw(surface)

    async def steps(pad):
        await pad.generate()

    pad, _ = _run_pad(lambda request: httpx.Response(502), steps, surface)
    assert pad.error == "Bad Gateway"


def test_transport_failure_without_message_uses_fallback():
    surface = _surface()
    _draw(surface)

    def handler(request):
        raise httpx.ConnectError("", request=request)

    async def steps(pad):
        await pad.generate()

    pad, _ = _run_pad(handler, steps, surface)
    assert pad.error == UNKNOWN_ERROR_MESSAGE
    assert not pad.is_loading


def test_closed_http_client_is_shown_as_error():
    surface = _surface()
    _draw(surface)

    async def scenario():
        http = httpx.AsyncClient(base_url="http://relay")
        await http.aclose()
        pad = DrawingPad(surface, RelayClient(http))
        await pad.generate()
        return pad

    pad = asyncio.run(scenario())
    assert "closed" in pad.error
    assert pad.generated_image is None
    assert not pad.is_loading


def test_toolbar_updates_surface_style():
    surface = _surface()

    async def steps(pad):
        pad.set_color("#FF0000")
        pad.set_line_width(80)

    pad, _ = _run_pad(_ok(), steps, surface)
    assert pad.line_width == 50
    assert surface.line_width == 50
    assert surface.color == (255, 0, 0, 255)


def test_relay_client_generate_text():
    def handler(request):
        assert request.url.path == "/api/generate"
        assert json.loads(request.content) == {"prompt": "foo"}
        return httpx.Response(200, json={"output": "bar"})

    async def call():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://relay") as http:
            return await RelayClient(http).generate("foo")

    assert asyncio.run(call()) == "bar"


def test_relay_client_rejects_response_without_output():
    async def call():
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"result": 1}))
        async with httpx.AsyncClient(transport=transport, base_url="http://relay") as http:
            return await RelayClient(http).generate("foo")

    with pytest.raises(RelayError):
        asyncio.run(call())


def test_pad_against_the_relay_app():
    class Backend:
        def __init__(self):
            self.images = []

        async def generate_text(self, prompt):
            return prompt

        async def generate_image(self, image, prompt, mime="image/png"):
            self.images.append(image)
            return "R0VO"

    backend = Backend()
    surface = _surface()
    _draw(surface)

    async def scenario():
        transport = httpx.ASGITransport(app=main.app)
        async with httpx.AsyncClient(transport=transport, base_url="http://relay") as http:
            pad = DrawingPad(surface, RelayClient(http))
            await pad.generate()
            return pad

    main.app.dependency_overrides[main.get_backend] = lambda: backend
    try:
        pad = asyncio.run(scenario())
    finally:
        main.app.dependency_overrides.clear()

    assert pad.generated_image == PNG_DATA_URL_PREFIX + "R0VO"
    assert len(backend.images) == 1
    assert backend.images[0].startswith(b"\x89PNG")

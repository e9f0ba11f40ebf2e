# drawpad/llm_client.py
# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Optional, Protocol, runtime_checkable
from openai import AsyncOpenAI

from drawpad import prompting
from drawpad.config import Settings
from drawpad.snapshot import PNG_MIME

_EXT = {"image/png": "png", "image/jpeg": "jpg", "image/webp": "webp"}


@runtime_checkable
class GenerationBackend(Protocol):
    async def generate_text(self, prompt: str) -> str:
        ...

    async def generate_image(self, image: bytes, prompt: str, mime: str = PNG_MIME) -> str:
        ...


# ---------------------------------------- OpenAI gateway ---------------------------------------- #
class OpenAIGateway:
    """
    One upstream call per relay request, no retries. Failures from the SDK
    (connection, quota, rejected input) propagate unchanged to the route.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _client(self) -> AsyncOpenAI:
        if not self.settings.api_key:
            raise RuntimeError("OPENAI_API_KEY missing. Set it in .env.")
        # Configure HTTPS_PROXY/HTTP_PROXY in the environment when a proxy is required; httpx will read it automatically.
        return AsyncOpenAI(api_key=self.settings.api_key, base_url=self.settings.base_url, max_retries=0)

    async def generate_text(self, prompt: str) -> str:
        # Build a fresh client per call so requests share no connection state.
        async with self._client() as client:
            resp = await client.chat.completions.create(
                model=self.settings.text_model,
                messages=prompting.build_messages(prompt),
            )
        return resp.choices[0].message.content or ""

    async def generate_image(self, image: bytes, prompt: str, mime: str = PNG_MIME) -> str:
        """Returns the generated picture as bare base64 PNG."""
        filename = f"sketch.{_EXT.get(mime, 'png')}"
        async with self._client() as client:
            resp = await client.images.edit(
                model=self.settings.image_model,
                image=(filename, image, mime),
                prompt=prompt,
                size=self.settings.image_size,
            )
        data = resp.data or []
        b64: Optional[str] = data[0].b64_json if data else None
        if not b64:
            raise RuntimeError("image model returned no image data")
        return b64

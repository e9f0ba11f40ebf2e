# -*- coding: utf-8 -*-
from __future__ import annotations
import base64
import io
from typing import Tuple
from PIL import Image

PNG_MIME = "image/png"
PNG_DATA_URL_PREFIX = f"data:{PNG_MIME};base64,"


def encode_png_data_url(image: Image.Image) -> str:
    """Encode a Pillow image as a PNG data URL."""
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return PNG_DATA_URL_PREFIX + base64.b64encode(buf.getvalue()).decode("ascii")


def split_data_url(image_data: str, default_mime: str = PNG_MIME) -> Tuple[str, str]:
    """
    Split into (mime, base64 payload). Accepts either a data URL or raw base64,
    in which case default_mime is reported.
    """
    if image_data.startswith("data:"):
        header, _, b64 = image_data.partition(",")
        mime = header[len("data:"):].split(";")[0] or default_mime
        return mime, b64
    return default_mime, image_data


def strip_data_url_header(data_url: str) -> str:
    # 'data:image/png;base64,AAAA' -> 'AAAA'
    return split_data_url(data_url)[1]


def decode_data_url(image_data: str) -> bytes:
    """Decode the payload of a data URL (or raw base64) into bytes. Raises binascii.Error on bad input."""
    _, b64 = split_data_url(image_data)
    return base64.b64decode(b64, validate=True)

# -*- coding: utf-8 -*-
from __future__ import annotations
from typing import Literal, Optional
from pydantic import BaseModel, Field

# ===== Request / response bodies =====

class GenerateRequest(BaseModel):
    # Forwarded verbatim to the text model.
    prompt: str

class SketchRequest(BaseModel):
    # Raw base64 without a header, or a full data URL; both are accepted.
    image: str = Field(..., min_length=1)
    image_mime: Optional[Literal["image/png", "image/jpeg", "image/webp"]] = "image/png"
    # Falls back to prompting.SKETCH_PROMPT when empty.
    prompt: Optional[str] = None

class GenerateResponse(BaseModel):
    # Model text for /api/generate, base64 PNG for /api/sketch.
    output: str

class ErrorResponse(BaseModel):
    error: str

class Health(BaseModel):
    status: Literal["ok"] = "ok"
    model: Optional[str] = None
    image_model: Optional[str] = None
    base_url: Optional[str] = None

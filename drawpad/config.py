# -*- coding: utf-8 -*-
from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Project root (one level above drawpad/).
ROOT = Path(__file__).resolve().parents[1]

# Load .env from the project root so working directory changes do not break configuration.
load_dotenv(ROOT / ".env")


def _resolve_dir(raw: str) -> Path:
    # Absolute path -> use as-is; relative path -> resolve from the project root.
    p = Path(raw)
    return p if p.is_absolute() else (ROOT / p)


@dataclass(frozen=True)
class Settings:
    api_key: str = ""
    base_url: Optional[str] = None
    text_model: str = "gpt-4o"
    image_model: str = "gpt-image-1"
    image_size: str = "1024x1024"
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: str = ""
    static_dir: Path = ROOT / "client" / "dist"
    logs_dir: Optional[Path] = None


def load_settings() -> Settings:
    """Read the environment once. Nothing here is reloaded while the process runs."""
    logs_env = os.getenv("LOGS_DIR", "").strip()
    return Settings(
        api_key=(os.getenv("OPENAI_API_KEY") or "").strip(),
        base_url=(os.getenv("OPENAI_BASE_URL") or "").strip() or None,  # Recommended to include /v1
        text_model=(os.getenv("OPENAI_MODEL") or "").strip() or "gpt-4o",
        image_model=(os.getenv("OPENAI_IMAGE_MODEL") or "").strip() or "gpt-image-1",
        image_size=(os.getenv("OPENAI_IMAGE_SIZE") or "").strip() or "1024x1024",
        host=(os.getenv("HOST") or "").strip() or "0.0.0.0",
        port=int(os.getenv("PORT") or 3000),
        cors_origins=os.getenv("CORS_ORIGINS", "").strip(),
        static_dir=_resolve_dir(os.getenv("STATIC_DIR", "").strip() or "client/dist"),
        logs_dir=_resolve_dir(logs_env) if logs_env else None,
    )


settings = load_settings()

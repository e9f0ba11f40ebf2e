# -*- coding: utf-8 -*-
from __future__ import annotations
import time
import traceback
from functools import lru_cache
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.responses import FileResponse, JSONResponse

from drawpad import prompting
from drawpad.config import settings
from drawpad.llm_client import GenerationBackend, OpenAIGateway
from drawpad.relay_logging import RelayLogger
from drawpad.schemas import ErrorResponse, GenerateRequest, GenerateResponse, Health, SketchRequest
from drawpad.snapshot import decode_data_url, split_data_url


app = FastAPI(title="Drawpad Relay", version="0.1.0")

# CORS configuration (development friendly).
# Supported modes:
#   1) CORS_ORIGINS="*"          -> allow all origins, credentials disabled.
#   2) CORS_ORIGINS empty         -> allow localhost/127.0.0.1 on any port (Vite dev server).
#   3) CORS_ORIGINS=a,b,c         -> allow only the listed origins.
def add_cors(target: FastAPI, cors_origins: str) -> None:
    if cors_origins == "*":
        target.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    elif cors_origins:
        origins = [o.strip() for o in cors_origins.split(",") if o.strip()]
        target.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
    else:
        target.add_middleware(
            CORSMiddleware,
            allow_origin_regex=r"^http://(localhost|127\.0\.0\.1)(:\d+)?$",
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )


add_cors(app, settings.cors_origins)

relay_log = RelayLogger(base_dir=settings.logs_dir)


@lru_cache(maxsize=1)
def get_backend() -> GenerationBackend:
    return OpenAIGateway(settings)


def _elapsed_ms(t0: float) -> int:
    return int((time.perf_counter() - t0) * 1000)


# ------------------------------ Error handlers --------------------------------- #
# A body the model could never accept fails like any other upstream rejection: 500 {"error"}.
@app.exception_handler(RequestValidationError)
async def _invalid_body(request: Request, exc: RequestValidationError):
    parts = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err.get("loc", ()) if x != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(status_code=500, content={"error": "; ".join(parts) or "invalid request"})

# Anything that escapes a route: print the stack trace so terminal logs reveal the root cause.
@app.exception_handler(Exception)
async def _unhandled_except(request: Request, exc: Exception):
    traceback.print_exc()
    return JSONResponse(status_code=500, content={"error": f"internal error: {exc.__class__.__name__}: {str(exc)}"})


# ------------------------------ API --------------------------------- #
@app.get("/api/health", response_model=Health)
def health():
    return Health(
        status="ok",
        model=settings.text_model,
        image_model=settings.image_model,
        base_url=settings.base_url or "unset",
    )

@app.post("/api/generate", response_model=GenerateResponse, responses={500: {"model": ErrorResponse}})
async def generate(req: GenerateRequest, backend: GenerationBackend = Depends(get_backend)):
    """Forward the prompt to the text model and return its reply."""
    t0 = time.perf_counter()
    try:
        output = await backend.generate_text(req.prompt)
    except Exception as e:
        relay_log.log("generate.error", {"elapsed_ms": _elapsed_ms(t0), "prompt_chars": len(req.prompt),
                                         "error_type": e.__class__.__name__, "error": str(e)})
        return JSONResponse(status_code=500, content={"error": str(e)})
    relay_log.log("generate.ok", {"elapsed_ms": _elapsed_ms(t0), "prompt_chars": len(req.prompt),
                                  "output_chars": len(output)})
    return GenerateResponse(output=output)

@app.post("/api/sketch", response_model=GenerateResponse, responses={500: {"model": ErrorResponse}})
async def sketch(req: SketchRequest, backend: GenerationBackend = Depends(get_backend)):
    """
    Turn a drawing into a generated picture.
    - image: bare base64 or data URL; a data URL's own mime wins over image_mime.
    - output: bare base64 PNG, ready to be prefixed with data:image/png;base64,
    """
    t0 = time.perf_counter()
    prompt = prompting.build_sketch_prompt(req.prompt)
    mime, _ = split_data_url(req.image, req.image_mime or "image/png")
    try:
        image = decode_data_url(req.image)
        output = await backend.generate_image(image, prompt, mime)
    except Exception as e:
        relay_log.log("sketch.error", {"elapsed_ms": _elapsed_ms(t0), "prompt_chars": len(prompt),
                                       "error_type": e.__class__.__name__, "error": str(e)})
        return JSONResponse(status_code=500, content={"error": str(e)})
    relay_log.log("sketch.ok", {"elapsed_ms": _elapsed_ms(t0), "prompt_chars": len(prompt),
                                "image_bytes": len(image), "output_chars": len(output)})
    return GenerateResponse(output=output)


# ------------------------------ Single-page client --------------------------------- #
# Registered last so every API route above takes precedence.
@app.get("/{full_path:path}", include_in_schema=False)
async def client_app(full_path: str):
    dist = settings.static_dir.resolve()
    if full_path:
        try:
            candidate = (dist / full_path).resolve()
            if candidate.is_file() and candidate.is_relative_to(dist):
                return FileResponse(str(candidate))
        except (OSError, ValueError):
            pass  # Unusable path (NUL byte, too long): serve the entry document.
    index = dist / "index.html"
    if index.is_file():
        return FileResponse(str(index))
    return JSONResponse(status_code=404, content={"error": "client build not found"})

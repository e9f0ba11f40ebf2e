import io
import json

from drawpad.config import ROOT, load_settings
from drawpad.relay_logging import RelayLogger

_VARS = ("OPENAI_API_KEY", "OPENAI_BASE_URL", "OPENAI_MODEL", "OPENAI_IMAGE_MODEL",
         "OPENAI_IMAGE_SIZE", "HOST", "PORT", "CORS_ORIGINS", "STATIC_DIR", "LOGS_DIR")


def _clean_env(monkeypatch):
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    _clean_env(monkeypatch)
    s = load_settings()
    assert s.api_key == ""
    assert s.base_url is None
    assert s.text_model == "gpt-4o"
    assert s.image_model == "gpt-image-1"
    assert s.port == 3000
    assert s.static_dir == ROOT / "client" / "dist"
    assert s.logs_dir is None


def test_environment_overrides(monkeypatch, tmp_path):
    _clean_env(monkeypatch)
    monkeypatch.setenv("OPENAI_API_KEY", "  sk-test ")
    monkeypatch.setenv("OPENAI_BASE_URL", "http://localhost:8080/v1")
    monkeypatch.setenv("PORT", "8081")
    monkeypatch.setenv("STATIC_DIR", str(tmp_path))
    monkeypatch.setenv("LOGS_DIR", "var/logs")
    s = load_settings()
    assert s.api_key == "sk-test"
    assert s.base_url == "http://localhost:8080/v1"
    assert s.port == 8081
    assert s.static_dir == tmp_path
    assert s.logs_dir == ROOT / "var" / "logs"


def test_relay_logger_writes_json_lines_to_stream():
    buf = io.StringIO()
    RelayLogger(stream=buf).log("generate.ok", {"elapsed_ms": 12})
    entry = json.loads(buf.getvalue().strip())
    assert entry["event"] == "generate.ok"
    assert entry["elapsed_ms"] == 12
    assert entry["ts"].endswith("Z")


def test_relay_logger_appends_to_daily_file(tmp_path):
    logger = RelayLogger(base_dir=tmp_path / "logs")
    logger.log("sketch.error", {"error": "boom"})
    logger.log("sketch.ok", {})
    files = list((tmp_path / "logs").glob("*.log"))
    assert len(files) == 1
    events = [json.loads(line)["event"] for line in files[0].read_text(encoding="utf-8").splitlines()]
    assert events == ["sketch.error", "sketch.ok"]

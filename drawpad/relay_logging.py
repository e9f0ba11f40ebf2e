from __future__ import annotations

import json
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, TextIO


class RelayLogger:
    """
    Lightweight JSON-lines logger for relay diagnostics.
    With a base_dir each entry is appended to <base_dir>/YYYYMMDD.log,
    otherwise entries go to the given stream (stderr by default).
    Prompts and image payloads are never written, only their sizes.
    """

    def __init__(self, *, base_dir: Optional[Path] = None, stream: Optional[TextIO] = None) -> None:
        self.base_dir = base_dir
        if self.base_dir is not None:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        self.stream = stream
        self._lock = threading.Lock()

    def log(self, event: str, payload: Dict[str, Any]) -> None:
        now = datetime.now(timezone.utc)
        entry = {
            "ts": now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z",
            "event": event,
        }
        entry.update(payload)
        line = json.dumps(entry, ensure_ascii=False)
        with self._lock:
            if self.base_dir is None:
                out = self.stream or sys.stderr
                out.write(line + "\n")
                out.flush()
                return
            path = self.base_dir / (now.strftime("%Y%m%d") + ".log")
            with path.open("a", encoding="utf-8") as fp:
                fp.write(line + "\n")

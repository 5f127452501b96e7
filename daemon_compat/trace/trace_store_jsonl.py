from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any


class TraceStoreJSONL:
    """
    Append-only decision log, one JSON object per line.

    Several daemons in one process may share a store; appends are serialized
    so lines never interleave.
    """

    def __init__(self, path: Path):
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def append(self, event: dict[str, Any]) -> None:
        line = json.dumps(event, ensure_ascii=False, sort_keys=True)
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")

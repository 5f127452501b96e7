from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .trace_store_jsonl import TraceStoreJSONL


class TraceEmitter:
    def __init__(self, store: TraceStoreJSONL, run_id: str):
        self._store = store
        self._run_id = run_id

    @property
    def run_id(self) -> str:
        return self._run_id

    def emit(
        self,
        event_type: str,
        *,
        decision: dict[str, Any] | None = None,
        message: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        event: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "run_id": self._run_id,
            "event_type": event_type,
        }
        if decision is not None:
            event["decision"] = decision
        if message is not None:
            event["message"] = message
        if data is not None:
            event["data"] = data

        self._store.append(event)

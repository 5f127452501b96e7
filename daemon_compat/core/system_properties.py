from __future__ import annotations

import threading
from typing import Any, Dict, Mapping, Optional

from .jvm_args import property_table


class SystemProperties:
    """
    Live property table of the running daemon.

    Writes replace the whole table; there is no per-key merge.
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None):
        self._lock = threading.Lock()
        self._props: Dict[str, str] = property_table(initial or {})

    def snapshot(self) -> Dict[str, str]:
        with self._lock:
            return dict(self._props)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        with self._lock:
            return self._props.get(key, default)

    def replace(self, properties: Mapping[str, Any]) -> None:
        table = property_table(properties)
        with self._lock:
            self._props = table

    def __len__(self) -> int:
        with self._lock:
            return len(self._props)


_PROCESS_PROPERTIES = SystemProperties()


def process_properties() -> SystemProperties:
    return _PROCESS_PROPERTIES

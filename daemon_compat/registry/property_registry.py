from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable


IMMUTABLE_SYSTEM_PROPERTIES = (
    "file.encoding",
    "user.language",
    "user.country",
    "user.variant",
    "java.io.tmpdir",
    "com.sun.management.jmxremote",
    "com.sun.management.jmxremote.port",
    "com.sun.management.jmxremote.authenticate",
    "com.sun.management.jmxremote.ssl",
)

# Visible only to the running daemon; never required to match across builds.
IMMUTABLE_DAEMON_SYSTEM_PROPERTIES = (
    "javax.net.ssl.keyStore",
    "javax.net.ssl.keyStorePassword",
    "javax.net.ssl.keyStoreType",
    "javax.net.ssl.trustStore",
    "javax.net.ssl.trustStorePassword",
    "javax.net.ssl.trustStoreType",
)


@dataclass(frozen=True)
class PropertyRegistry:
    """
    Read-only classification table for system property keys.

    Keys in either set are immutable (fixed at process start); every other key
    is mutable and may be overlaid onto a running daemon.
    """

    immutable: FrozenSet[str]
    daemon_only: FrozenSet[str]

    @classmethod
    def of(cls, immutable: Iterable[str] = (), daemon_only: Iterable[str] = ()) -> "PropertyRegistry":
        return cls(immutable=frozenset(immutable), daemon_only=frozenset(daemon_only))

    def is_immutable(self, key: str) -> bool:
        return key in self.immutable or key in self.daemon_only

    def is_daemon_only(self, key: str) -> bool:
        return key in self.daemon_only

    def as_dict(self) -> Dict[str, Any]:
        return {
            "immutable_system_properties": sorted(self.immutable),
            "immutable_daemon_system_properties": sorted(self.daemon_only),
        }


DEFAULT_REGISTRY = PropertyRegistry.of(IMMUTABLE_SYSTEM_PROPERTIES, IMMUTABLE_DAEMON_SYSTEM_PROPERTIES)


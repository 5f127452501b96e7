from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..registry.property_registry import DEFAULT_REGISTRY, PropertyRegistry
from .classifier import ArgumentClassifier
from .jvm_args import ImmutableArgs, property_table
from .jvm_options import JvmOptions
from .runtime_identity import JAVA_9, JavaVersion, RuntimeIdentity


DEFAULT_IDLE_TIMEOUT_MS = 3 * 60 * 60 * 1000
DEFAULT_PERIODIC_CHECK_INTERVAL_MS = 10 * 1000

DEFAULT_JVM_ARGS = ("-Xmx1024m", "-XX:MaxPermSize=256m", "-XX:+HeapDumpOnOutOfMemoryError")
DEFAULT_JVM_9_ARGS = ("-Xmx1024m", "-XX:+HeapDumpOnOutOfMemoryError")

DEFAULT_USER_HOME_DIR = Path.home() / ".gradle"

INTERACTIVE_TOGGLE = "org.gradle.interactive"


def default_jvm_args_for(java_version: JavaVersion) -> tuple:
    return DEFAULT_JVM_9_ARGS if java_version >= JAVA_9 else DEFAULT_JVM_ARGS


def _console_attached() -> bool:
    stream = sys.stdin
    if stream is None:
        return False
    try:
        return stream.isatty()
    except (ValueError, OSError):
        return False


class DaemonParameters:
    """
    Resolved JVM configuration for one build request or one running daemon.

    Composition, in increasing precedence:
    1. version-dependent default heap/GC args (only when the caller supplied no
       non-property launch flag)
    2. extra system properties, then user launch args
    3. programmatic overrides (debug toggle)

    Only the inputs are stored; every derived view is rebuilt on access.
    """

    def __init__(
        self,
        runtime: RuntimeIdentity,
        extra_system_properties: Optional[Mapping[str, Any]] = None,
        *,
        registry: PropertyRegistry = DEFAULT_REGISTRY,
        user_home_dir: Optional[Path] = None,
        ambient_properties: Optional[Mapping[str, Any]] = None,
    ):
        self._classifier = ArgumentClassifier(registry)
        self._runtime = runtime
        self._extra_system_properties: Dict[str, Any] = dict(extra_system_properties or {})
        self._jvm_args: List[str] = []
        self._defaults_for: Optional[JavaVersion] = None
        self._debug: Optional[bool] = None
        self._ambient_properties: Dict[str, str] = property_table(ambient_properties or {})

        self.user_home_dir = Path(user_home_dir) if user_home_dir is not None else DEFAULT_USER_HOME_DIR
        self.base_dir = self.user_home_dir / "daemon"
        self._environment: Dict[str, str] = dict(os.environ)
        self.idle_timeout_ms = DEFAULT_IDLE_TIMEOUT_MS
        self.periodic_check_interval_ms = DEFAULT_PERIODIC_CHECK_INTERVAL_MS
        self.enabled = True
        self.interactive = _console_attached() or self._ambient_properties.get(INTERACTIVE_TOGGLE, "").lower() == "true"

    @classmethod
    def from_launch_args(
        cls,
        runtime: RuntimeIdentity,
        launch_args: Iterable[object],
        *,
        registry: PropertyRegistry = DEFAULT_REGISTRY,
        ambient_properties: Optional[Mapping[str, Any]] = None,
    ) -> "DaemonParameters":
        """
        Parameters of an already running daemon, taken from its actual launch args.
        No defaults are layered on: the process already started with what it has.
        """
        params = cls(runtime, registry=registry, ambient_properties=ambient_properties)
        params.set_jvm_args(launch_args)
        return params

    @property
    def runtime(self) -> RuntimeIdentity:
        return self._runtime

    def set_runtime(self, runtime: RuntimeIdentity) -> "DaemonParameters":
        self._runtime = runtime
        return self

    @property
    def registry(self) -> PropertyRegistry:
        return self._classifier.registry

    @property
    def has_user_immutable_arg_override(self) -> bool:
        return self._classifier.has_immutable_args(self._jvm_args)

    @property
    def has_user_immutable_system_property_override(self) -> bool:
        return self._classifier.has_immutable_keys(self._extra_system_properties) or self._classifier.has_immutable_system_properties(
            self._jvm_args
        )

    def set_jvm_args(self, jvm_args: Iterable[object]) -> "DaemonParameters":
        self._jvm_args = [str(a) for a in jvm_args]
        return self

    @property
    def jvm_args(self) -> List[str]:
        return list(self._jvm_args)

    def apply_defaults_for(self, java_version: Optional[JavaVersion] = None) -> "DaemonParameters":
        """
        Select the default baseline for `java_version` (the runtime's version when omitted).
        Has no effect while the user supplies any non-property launch flag.
        """
        self._defaults_for = java_version if java_version is not None else self._runtime.java_version
        return self

    def set_debug(self, debug: bool) -> "DaemonParameters":
        self._debug = bool(debug)
        return self

    @property
    def debug(self) -> bool:
        return self.jvm_options().debug

    @property
    def environment(self) -> Dict[str, str]:
        return dict(self._environment)

    def set_environment(self, environment: Optional[Mapping[str, str]]) -> "DaemonParameters":
        self._environment = dict(os.environ) if environment is None else {str(k): str(v) for k, v in environment.items()}
        return self

    def set_base_dir(self, base_dir: Path) -> "DaemonParameters":
        self.base_dir = Path(base_dir)
        return self

    @property
    def ambient_properties(self) -> Dict[str, str]:
        return dict(self._ambient_properties)

    def set_ambient_properties(self, properties: Mapping[str, Any]) -> "DaemonParameters":
        self._ambient_properties = property_table(properties)
        return self

    def jvm_options(self) -> JvmOptions:
        options = JvmOptions(self.registry)
        options.system_properties(self._extra_system_properties)
        options.jvm_args(self._jvm_args)
        if self._defaults_for is not None and not self.has_user_immutable_arg_override:
            options.jvm_args(default_jvm_args_for(self._defaults_for))
        if self._debug is not None:
            options.debug = self._debug
        return options

    def effective_immutable_args(self) -> ImmutableArgs:
        return self.jvm_options().all_immutable_jvm_args()

    def effective_single_use_immutable_args(self) -> ImmutableArgs:
        return self.jvm_options().all_single_use_immutable_jvm_args()

    def effective_jvm_args(self) -> List[str]:
        return self.jvm_options().all_jvm_args()

    def immutable_system_properties(self) -> Dict[str, str]:
        return self.jvm_options().immutable_system_properties

    def system_properties(self) -> Dict[str, str]:
        return self.jvm_options().mutable_system_properties

    def effective_system_properties(self) -> Dict[str, str]:
        """
        Ambient properties, then mutable properties, then daemon-only immutable
        properties. Later sources win on key collision.
        """
        options = self.jvm_options()
        props: Dict[str, str] = dict(self._ambient_properties)
        props.update(options.mutable_system_properties)
        props.update(options.immutable_daemon_properties)
        return props

    def as_dict(self) -> Dict[str, Any]:
        return {
            "runtime": self._runtime.as_dict(),
            "effective_jvm_args": self.effective_jvm_args(),
            "effective_immutable_args": self.effective_immutable_args().as_list(),
            "effective_single_use_immutable_args": self.effective_single_use_immutable_args().as_list(),
            "system_properties": self.system_properties(),
            "has_user_immutable_arg_override": self.has_user_immutable_arg_override,
            "has_user_immutable_system_property_override": self.has_user_immutable_system_property_override,
            "debug": self.debug,
            "base_dir": str(self.base_dir),
            "idle_timeout_ms": self.idle_timeout_ms,
            "periodic_check_interval_ms": self.periodic_check_interval_ms,
        }

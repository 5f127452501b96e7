from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..registry.property_registry import DEFAULT_REGISTRY, PropertyRegistry
from .jvm_args import ImmutableArgs, format_system_properties, parse_system_property, property_value


DEBUG_AGENT_ARG = "-agentlib:jdwp=transport=dt_socket,server=y,suspend=y,address=5005"

_ENABLE_ASSERTIONS = ("-ea", "-enableassertions")
_DISABLE_ASSERTIONS = ("-da", "-disableassertions")
_BOOTCLASSPATH_PREFIX = "-Xbootclasspath:"


class JvmOptions:
    """
    Launch arguments parsed into managed slots (heap, assertions, debug agent,
    boot classpath, system properties) plus the remaining extra args in order.

    System properties are split by the registry: immutable ones become part of
    the immutable launch args, mutable ones can be overlaid later.
    """

    def __init__(self, registry: PropertyRegistry = DEFAULT_REGISTRY):
        self._registry = registry
        self._extra_jvm_args: List[str] = []
        self._mutable_system_properties: Dict[str, str] = {}
        self._immutable_system_properties: Dict[str, str] = {}
        self.min_heap_size: Optional[str] = None
        self.max_heap_size: Optional[str] = None
        self.bootstrap_classpath: Optional[str] = None
        self.assertions_enabled = False
        self.debug = False

    @property
    def registry(self) -> PropertyRegistry:
        return self._registry

    def jvm_args(self, args: Iterable[object]) -> "JvmOptions":
        for arg in args:
            s = str(arg)
            kv = parse_system_property(s)
            if kv is not None:
                self.system_property(kv[0], kv[1])
            elif s.startswith("-Xms") and len(s) > 4:
                self.min_heap_size = s[4:]
            elif s.startswith("-Xmx") and len(s) > 4:
                self.max_heap_size = s[4:]
            elif s.startswith(_BOOTCLASSPATH_PREFIX):
                self.bootstrap_classpath = s[len(_BOOTCLASSPATH_PREFIX):]
            elif s in _ENABLE_ASSERTIONS:
                self.assertions_enabled = True
            elif s in _DISABLE_ASSERTIONS:
                self.assertions_enabled = False
            elif s == DEBUG_AGENT_ARG:
                self.debug = True
            else:
                self._extra_jvm_args.append(s)
        return self

    def set_all_jvm_args(self, args: Iterable[object]) -> "JvmOptions":
        self._extra_jvm_args.clear()
        self._mutable_system_properties.clear()
        self._immutable_system_properties.clear()
        self.min_heap_size = None
        self.max_heap_size = None
        self.bootstrap_classpath = None
        self.assertions_enabled = False
        self.debug = False
        return self.jvm_args(args)

    def system_property(self, key: str, value: Any) -> "JvmOptions":
        text = property_value(value)
        if self._registry.is_immutable(key):
            self._immutable_system_properties[key] = text
            self._mutable_system_properties.pop(key, None)
        else:
            self._mutable_system_properties[key] = text
            self._immutable_system_properties.pop(key, None)
        return self

    def system_properties(self, properties: Mapping[str, Any]) -> "JvmOptions":
        for k, v in properties.items():
            self.system_property(str(k), v)
        return self

    def set_system_properties(self, properties: Mapping[str, Any]) -> "JvmOptions":
        self._mutable_system_properties.clear()
        self._immutable_system_properties.clear()
        return self.system_properties(properties)

    @property
    def extra_jvm_args(self) -> List[str]:
        return list(self._extra_jvm_args)

    @property
    def mutable_system_properties(self) -> Dict[str, str]:
        return dict(self._mutable_system_properties)

    @property
    def immutable_system_properties(self) -> Dict[str, str]:
        return dict(self._immutable_system_properties)

    @property
    def immutable_daemon_properties(self) -> Dict[str, str]:
        return {k: v for k, v in self._immutable_system_properties.items() if self._registry.is_daemon_only(k)}

    def _managed_jvm_args(self) -> List[str]:
        args: List[str] = []
        if self.min_heap_size is not None:
            args.append("-Xms" + self.min_heap_size)
        if self.max_heap_size is not None:
            args.append("-Xmx" + self.max_heap_size)
        if self.bootstrap_classpath is not None:
            args.append(_BOOTCLASSPATH_PREFIX + self.bootstrap_classpath)
        # Implemented as system properties but fixed at start like any other flag.
        args.extend(format_system_properties(self._immutable_system_properties))
        if self.assertions_enabled:
            args.append("-ea")
        if self.debug:
            args.append(DEBUG_AGENT_ARG)
        return args

    def all_immutable_jvm_args(self) -> ImmutableArgs:
        return ImmutableArgs.of(self._extra_jvm_args + self._managed_jvm_args())

    def all_single_use_immutable_jvm_args(self) -> ImmutableArgs:
        return self.all_immutable_jvm_args().without(format_system_properties(self.immutable_daemon_properties))

    def all_jvm_args(self) -> List[str]:
        return self.all_immutable_jvm_args().as_list() + format_system_properties(self._mutable_system_properties)

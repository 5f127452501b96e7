from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple


SYSTEM_PROPERTY_PREFIX = "-D"


def parse_system_property(arg: str) -> Optional[Tuple[str, str]]:
    """
    Split "-Dkey=value" into (key, value).

    "-Dkey" yields an empty value. Returns None when the argument is not a
    property assignment, including "-D" and "-D=value" which have no key.
    """
    if not arg.startswith(SYSTEM_PROPERTY_PREFIX):
        return None
    key, sep, value = arg[len(SYSTEM_PROPERTY_PREFIX):].partition("=")
    if not key:
        return None
    return key, value if sep else ""


def property_value(value: object) -> str:
    """
    String form of a property value: null is empty, booleans are lower-case.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def property_table(properties: Mapping[str, object]) -> Dict[str, str]:
    return {str(k): property_value(v) for k, v in properties.items()}


def format_system_property(key: str, value: object) -> str:
    text = property_value(value)
    if text:
        return f"{SYSTEM_PROPERTY_PREFIX}{key}={text}"
    return f"{SYSTEM_PROPERTY_PREFIX}{key}"


def format_system_properties(properties: Mapping[str, object]) -> List[str]:
    return [format_system_property(k, v) for k, v in properties.items()]


@dataclass(frozen=True)
class ImmutableArgs:
    """
    Launch arguments that are fixed at process start.

    Keeps launch order for reproducing a command line, but compares as a set:
    two instances are equal when they hold the same arguments regardless of order.
    """

    args: Tuple[str, ...] = ()

    @classmethod
    def of(cls, args: Iterable[str]) -> "ImmutableArgs":
        seen: Dict[str, None] = {}
        for a in args:
            seen[str(a)] = None
        return cls(args=tuple(seen))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImmutableArgs):
            return NotImplemented
        return frozenset(self.args) == frozenset(other.args)

    def __hash__(self) -> int:
        return hash(frozenset(self.args))

    def __iter__(self) -> Iterator[str]:
        return iter(self.args)

    def __len__(self) -> int:
        return len(self.args)

    def __contains__(self, arg: object) -> bool:
        return arg in self.args

    @property
    def flags(self) -> Tuple[str, ...]:
        return tuple(a for a in self.args if parse_system_property(a) is None)

    @property
    def system_properties(self) -> Dict[str, str]:
        out: Dict[str, str] = {}
        for a in self.args:
            kv = parse_system_property(a)
            if kv is not None:
                out[kv[0]] = kv[1]
        return out

    def without(self, args: Iterable[str]) -> "ImmutableArgs":
        drop = set(args)
        return ImmutableArgs(args=tuple(a for a in self.args if a not in drop))

    def as_list(self) -> List[str]:
        return list(self.args)

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..registry.property_registry import DEFAULT_REGISTRY, PropertyRegistry
from .jvm_args import ImmutableArgs, format_system_property, parse_system_property, property_value


KIND_FLAG = "flag"
KIND_IMMUTABLE_PROPERTY = "immutable_property"
KIND_MUTABLE_PROPERTY = "mutable_property"


@dataclass(frozen=True)
class Classification:
    immutable_args: ImmutableArgs
    mutable_properties: Dict[str, str] = field(default_factory=dict)
    has_immutable_arg_override: bool = False
    has_immutable_system_property_override: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "immutable_args": self.immutable_args.as_list(),
            "mutable_properties": dict(self.mutable_properties),
            "has_immutable_arg_override": self.has_immutable_arg_override,
            "has_immutable_system_property_override": self.has_immutable_system_property_override,
        }


class ArgumentClassifier:
    """
    Partitions launch arguments into non-property flags, immutable properties
    and mutable properties.

    Total over its input: anything that is not a well-formed "-D<key>[=<value>]"
    is kept as an opaque immutable flag, so a malformed argument forces a
    restart instead of being dropped.
    """

    def __init__(self, registry: PropertyRegistry = DEFAULT_REGISTRY):
        self._registry = registry

    @property
    def registry(self) -> PropertyRegistry:
        return self._registry

    def kind_of(self, arg: object) -> str:
        kv = parse_system_property(str(arg))
        if kv is None:
            return KIND_FLAG
        return KIND_IMMUTABLE_PROPERTY if self._registry.is_immutable(kv[0]) else KIND_MUTABLE_PROPERTY

    def has_immutable_args(self, args: Iterable[object]) -> bool:
        return any(self.kind_of(a) == KIND_FLAG for a in args)

    def has_immutable_system_properties(self, args: Iterable[object]) -> bool:
        return any(self.kind_of(a) == KIND_IMMUTABLE_PROPERTY for a in args)

    def has_immutable_keys(self, properties: Mapping[str, Any]) -> bool:
        return any(self._registry.is_immutable(str(k)) for k in properties)

    def classify(
        self,
        args: Iterable[object],
        extra_properties: Optional[Mapping[str, Any]] = None,
    ) -> Classification:
        """
        Extra properties come from a source other than the flag list (environment,
        config file). They are classified by the same registry lookup and are
        applied before the flag list, so a "-D" argument wins on key collision.
        """
        properties: Dict[str, Tuple[str, bool]] = {}
        flags: List[str] = []
        arg_override = False
        prop_override = False

        for k, v in (extra_properties or {}).items():
            key = str(k)
            immutable = self._registry.is_immutable(key)
            prop_override = prop_override or immutable
            properties[key] = (property_value(v), immutable)

        for arg in args:
            s = str(arg)
            kv = parse_system_property(s)
            if kv is None:
                arg_override = True
                flags.append(s)
                continue
            immutable = self._registry.is_immutable(kv[0])
            prop_override = prop_override or immutable
            properties[kv[0]] = (kv[1], immutable)

        immutable_props = [format_system_property(k, v) for k, (v, imm) in properties.items() if imm]
        mutable = {k: v for k, (v, imm) in properties.items() if not imm}
        return Classification(
            immutable_args=ImmutableArgs.of(flags + immutable_props),
            mutable_properties=mutable,
            has_immutable_arg_override=arg_override,
            has_immutable_system_property_override=prop_override,
        )


def classify(
    args: Iterable[object],
    extra_properties: Optional[Mapping[str, Any]] = None,
    *,
    registry: PropertyRegistry = DEFAULT_REGISTRY,
) -> Classification:
    return ArgumentClassifier(registry).classify(args, extra_properties)

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from daemon_compat.contract_store import ContractStore, read_document
from daemon_compat.core.daemon_parameters import DaemonParameters
from daemon_compat.core.errors import ConfigError
from daemon_compat.core.runtime_identity import JAVA_9, JavaVersion, RuntimeIdentity
from daemon_compat.registry.property_registry import DEFAULT_REGISTRY, PropertyRegistry
from daemon_compat.resources import schemas_dir


_CONTRACTS: Optional[ContractStore] = None


def _contracts() -> ContractStore:
    global _CONTRACTS
    if _CONTRACTS is None:
        store = ContractStore(schemas_dir())
        store.load()
        _CONTRACTS = store
    return _CONTRACTS


def _validated(schema_name: str, raw: Any, *, code: str, source: str) -> Dict[str, Any]:
    errors = _contracts().validate(schema_name, raw)
    if errors:
        raise ConfigError(code=code, message="Validation failed: {}".format(source), data={"errors": errors})
    return raw


def load_property_registry(path: Path) -> PropertyRegistry:
    """
    Load a registry from YAML/JSON. With `extend_defaults: true` the file's keys
    are added to the built-in sets instead of replacing them.
    """
    raw = _validated("property_registry.schema.json", read_document(path), code="registry.invalid", source=str(path))

    immutable = set(raw.get("immutable_system_properties", []))
    daemon_only = set(raw.get("immutable_daemon_system_properties", []))
    if raw.get("extend_defaults", False):
        immutable |= DEFAULT_REGISTRY.immutable
        daemon_only |= DEFAULT_REGISTRY.daemon_only
    return PropertyRegistry.of(immutable, daemon_only)


def daemon_parameters_from_dict(
    raw: Any,
    *,
    registry: PropertyRegistry = DEFAULT_REGISTRY,
    apply_defaults: bool = True,
    source: str = "<dict>",
) -> DaemonParameters:
    """
    Build parameters from a mapping shaped like daemon_parameters.schema.json.

    `apply_defaults` is the fallback when the mapping has no `apply_defaults` key.
    """
    data = _validated("daemon_parameters.schema.json", raw, code="parameters.invalid", source=source)

    version = JavaVersion.parse(data["java_version"]) if "java_version" in data else JAVA_9
    runtime = RuntimeIdentity(java_home=data["java_home"], java_version=version)
    user_home = data.get("user_home_dir")

    params = DaemonParameters(
        runtime,
        data.get("system_properties") or {},
        registry=registry,
        user_home_dir=Path(user_home) if user_home else None,
        ambient_properties=data.get("ambient_properties") or {},
    )
    params.set_jvm_args(data.get("jvm_args") or [])
    if "debug" in data:
        params.set_debug(data["debug"])
    if "base_dir" in data:
        params.set_base_dir(Path(data["base_dir"]))
    if "environment" in data:
        params.set_environment(data["environment"])
    if "idle_timeout_ms" in data:
        params.idle_timeout_ms = int(data["idle_timeout_ms"])
    if "periodic_check_interval_ms" in data:
        params.periodic_check_interval_ms = int(data["periodic_check_interval_ms"])
    if "enabled" in data:
        params.enabled = bool(data["enabled"])
    if "interactive" in data:
        params.interactive = bool(data["interactive"])
    if data.get("apply_defaults", apply_defaults):
        params.apply_defaults_for(version)
    return params


def load_daemon_parameters(
    path: Path,
    *,
    registry: PropertyRegistry = DEFAULT_REGISTRY,
    apply_defaults: bool = True,
) -> DaemonParameters:
    return daemon_parameters_from_dict(read_document(path), registry=registry, apply_defaults=apply_defaults, source=str(path))

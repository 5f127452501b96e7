from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Dict, List, Optional

from daemon_compat.config import load_daemon_parameters, load_property_registry
from daemon_compat.contract_store import ContractStore
from daemon_compat.core.build_process import BuildProcess
from daemon_compat.core.classifier import ArgumentClassifier
from daemon_compat.core.errors import DaemonCompatError, ValidationError
from daemon_compat.core.system_properties import SystemProperties
from daemon_compat.registry.property_registry import DEFAULT_REGISTRY, PropertyRegistry
from daemon_compat.resources import schemas_dir
from daemon_compat.trace.replay import Replay
from daemon_compat.trace.trace_emitter import TraceEmitter
from daemon_compat.trace.trace_store_jsonl import TraceStoreJSONL


EXIT_REJECTED = 3


def _format_cli_error(e: Exception) -> str:
    """
    Print-friendly error formatting for CLI commands.
    Includes the structured `data` payload (e.g. schema errors) when present.
    """
    if isinstance(e, DaemonCompatError) and isinstance(e.data, dict) and e.data:
        return str(e) + "\n" + json.dumps(e.data, ensure_ascii=False, indent=2)
    return str(e)


def _registry_from_args(args: argparse.Namespace) -> PropertyRegistry:
    if getattr(args, "registry", None):
        return load_property_registry(Path(args.registry))
    return DEFAULT_REGISTRY


def _parse_properties(pairs: Optional[List[str]]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not key:
            raise ValidationError(code="cli.invalid", message="--property must be KEY=VALUE", data={"property": pair})
        out[key] = value if sep else ""
    return out


def cmd_classify(args: argparse.Namespace) -> int:
    classifier = ArgumentClassifier(_registry_from_args(args))
    result = classifier.classify(args.arg or [], _parse_properties(args.property))
    print(json.dumps(result.as_dict(), ensure_ascii=False, indent=2))
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    registry = _registry_from_args(args)
    current = load_daemon_parameters(Path(args.current), registry=registry, apply_defaults=False)
    requested = load_daemon_parameters(Path(args.requested), registry=registry)

    trace = None
    if args.trace:
        trace = TraceEmitter(store=TraceStoreJSONL(Path(args.trace)), run_id=args.run_id)

    process = BuildProcess(current, SystemProperties(current.ambient_properties), trace)
    result = process.evaluate(requested)
    admitted = process.configure_for_build(requested)
    out = result.as_dict()
    if admitted:
        out["overlay"] = process.properties.snapshot()
    print(json.dumps(out, ensure_ascii=False, indent=2))
    return 0 if admitted else EXIT_REJECTED


def cmd_list_registry(args: argparse.Namespace) -> int:
    print(json.dumps(_registry_from_args(args).as_dict(), ensure_ascii=False, indent=2))
    return 0


def cmd_check_contracts(_args: argparse.Namespace) -> int:
    store = ContractStore(schemas_dir())
    store.load()

    schema_errors = store.check_schemas()
    if schema_errors:
        print("Schema validation failed:")
        for name, err in schema_errors:
            print("- {}: {}".format(name, err))
        return 1

    print("Contracts OK")
    return 0


def cmd_show_trace(args: argparse.Namespace) -> int:
    events = list(Replay(Path(args.trace)).iter_events(args.event_type))

    if args.tail is not None and args.tail >= 0:
        events = events[-args.tail :] if args.tail else []

    for e in events:
        if args.pretty:
            print(json.dumps(e, ensure_ascii=False, indent=2))
        else:
            print(json.dumps(e, ensure_ascii=False))
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(prog="dcompat", description="Daemon reuse compatibility checks")
    sub = parser.add_subparsers(dest="cmd", required=True)

    p_classify = sub.add_parser("classify", help="Classify launch args into flags, immutable and mutable properties")
    p_classify.add_argument("--arg", action="append", help="Launch argument; repeatable (use --arg=-Xmx1g)")
    p_classify.add_argument("--property", action="append", help="Extra system property KEY=VALUE; repeatable")
    p_classify.add_argument("--registry", help="Property registry file (yaml/json)")
    p_classify.set_defaults(func=cmd_classify)

    p_check = sub.add_parser("check", help="Decide whether a running daemon can serve a requested build")
    p_check.add_argument("--current", required=True, help="Parameters of the running daemon (yaml/json)")
    p_check.add_argument("--requested", required=True, help="Parameters requested by the build (yaml/json)")
    p_check.add_argument("--registry", help="Property registry file (yaml/json)")
    p_check.add_argument("--trace", help="Trace output path (jsonl)")
    p_check.add_argument("--run-id", default="run_cli", help="Run ID for trace correlation")
    p_check.set_defaults(func=cmd_check)

    p_reg = sub.add_parser("list-registry", help="Print immutable system property keys")
    p_reg.add_argument("--registry", help="Property registry file (yaml/json)")
    p_reg.set_defaults(func=cmd_list_registry)

    p_contracts = sub.add_parser("check-contracts", help="Validate shipped JSON schemas")
    p_contracts.set_defaults(func=cmd_check_contracts)

    p_show = sub.add_parser("show-trace", help="Show trace events from a JSONL file")
    p_show.add_argument("--trace", default="trace.jsonl", help="Trace path (jsonl)")
    p_show.add_argument("--event-type", help="Only events of this type")
    p_show.add_argument("--tail", type=int, help="Only the last N events")
    p_show.add_argument("--pretty", action="store_true", help="Indent JSON output")
    p_show.set_defaults(func=cmd_show_trace)

    ns = parser.parse_args(argv)
    try:
        return int(ns.func(ns))
    except DaemonCompatError as e:
        print(_format_cli_error(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())

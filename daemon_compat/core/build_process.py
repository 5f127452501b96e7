from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..trace.trace_emitter import TraceEmitter
from .daemon_parameters import DaemonParameters
from .jvm_args import ImmutableArgs, parse_system_property
from .jvm_options import JvmOptions
from .system_properties import SystemProperties, process_properties


@dataclass(frozen=True)
class CompatibilityDecision:
    decision: str  # admit|reject
    reason_codes: List[str]
    current_immutables: ImmutableArgs
    required_immutables: ImmutableArgs
    summary: Optional[str] = None
    overlay: Dict[str, str] = field(default_factory=dict)

    @property
    def admitted(self) -> bool:
        return self.decision == "admit"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "decision": self.decision,
            "reason_codes": list(self.reason_codes),
            "summary": self.summary,
            "current_immutables": _redacted(self.current_immutables),
            "required_immutables": _redacted(self.required_immutables),
            "overlay_keys": sorted(self.overlay),
        }


def _redacted(args: ImmutableArgs) -> List[str]:
    out: List[str] = []
    for a in args:
        kv = parse_system_property(a)
        if kv is not None and "password" in kv[0].lower():
            out.append(f"-D{kv[0]}=***")
        else:
            out.append(a)
    return out


def immutables_to_compare(current: DaemonParameters, requested: DaemonParameters) -> Tuple[ImmutableArgs, ImmutableArgs]:
    """
    Pick the (current, required) immutable sets to compare, by which kinds of
    immutable input the requested build explicitly supplied.

    - flags and immutable properties: compare everything
    - flags only: the property axis of the current process is replaced by the
      requested one, so only flags can differ
    - immutable properties only: both sides keep only their immutable
      properties, so neither the daemon's flags nor the request's default
      flags take part
    - neither: nothing to compare

    Daemon-only properties never take part on either side.
    """
    arg_override = requested.has_user_immutable_arg_override
    prop_override = requested.has_user_immutable_system_property_override

    if arg_override and prop_override:
        return current.effective_single_use_immutable_args(), requested.effective_single_use_immutable_args()
    if arg_override:
        ignore_props = JvmOptions(requested.registry)
        ignore_props.set_all_jvm_args(current.effective_single_use_immutable_args())
        ignore_props.set_system_properties(_without_daemon_only(requested, requested.immutable_system_properties()))
        return ignore_props.all_immutable_jvm_args(), requested.effective_single_use_immutable_args()
    if prop_override:
        current_props = JvmOptions(requested.registry)
        current_props.system_properties(_without_daemon_only(requested, current.immutable_system_properties()))
        required_props = JvmOptions(requested.registry)
        required_props.system_properties(_without_daemon_only(requested, requested.immutable_system_properties()))
        return current_props.all_immutable_jvm_args(), required_props.all_immutable_jvm_args()
    return ImmutableArgs(), ImmutableArgs()


def _without_daemon_only(requested: DaemonParameters, properties: Dict[str, str]) -> Dict[str, str]:
    return {k: v for k, v in properties.items() if not requested.registry.is_daemon_only(k)}


def evaluate(current: DaemonParameters, requested: DaemonParameters) -> CompatibilityDecision:
    """
    Decide whether a daemon running with `current` can serve a build that asks for `requested`.
    Pure; applying the overlay is left to the caller.
    """
    current_immutables, required_immutables = immutables_to_compare(current, requested)
    runtime_match = current.runtime == requested.runtime
    immutables_match = required_immutables == current_immutables

    reasons = ["runtime.ok" if runtime_match else "runtime.mismatch"]
    reasons.append("immutable_args.ok" if immutables_match else "immutable_args.mismatch")

    if runtime_match and immutables_match:
        return CompatibilityDecision(
            decision="admit",
            reason_codes=reasons,
            current_immutables=current_immutables,
            required_immutables=required_immutables,
            summary="Running daemon can serve the build",
            overlay=requested.effective_system_properties(),
        )
    if not runtime_match:
        summary = f"Runtime differs: {current.runtime.java_home} != {requested.runtime.java_home}"
    else:
        summary = "Build requires different immutable JVM args"
    return CompatibilityDecision(
        decision="reject",
        reason_codes=reasons,
        current_immutables=current_immutables,
        required_immutables=required_immutables,
        summary=summary,
    )


class BuildProcess:
    """
    The running daemon as seen by the reuse check.

    Calls are serialized per instance: the overlay replaces the whole property
    table, so two admitted builds must not interleave.
    """

    def __init__(
        self,
        parameters: DaemonParameters,
        properties: Optional[SystemProperties] = None,
        trace: Optional[TraceEmitter] = None,
    ):
        self._parameters = parameters
        self._properties = properties if properties is not None else process_properties()
        self._trace = trace
        self._lock = threading.Lock()

    @property
    def parameters(self) -> DaemonParameters:
        return self._parameters

    @property
    def properties(self) -> SystemProperties:
        return self._properties

    def evaluate(self, requested: DaemonParameters) -> CompatibilityDecision:
        return evaluate(self._parameters, requested)

    def configure_for_build(self, requested: DaemonParameters) -> bool:
        """
        Attempts to configure this process to run with the required build parameters.

        If the request explicitly defines immutable JVM args, they all have to
        match this process. Likewise for explicitly defined immutable system
        properties. On success the live property table is replaced with the
        requested effective system properties.

        Returns True if the process could be configured, False otherwise.
        """
        with self._lock:
            result = evaluate(self._parameters, requested)
            if self._trace is not None:
                self._trace.emit(
                    "compatibility_decision",
                    decision={"decision": result.decision, "reason_codes": result.reason_codes, "summary": result.summary},
                    data={
                        "current_runtime": self._parameters.runtime.as_dict(),
                        "requested_runtime": requested.runtime.as_dict(),
                        "current_immutables": _redacted(result.current_immutables),
                        "required_immutables": _redacted(result.required_immutables),
                    },
                )
            if not result.admitted:
                return False

            self._properties.replace(result.overlay)
            self._parameters.set_ambient_properties(result.overlay)
            if self._trace is not None:
                self._trace.emit("overlay_applied", message="System properties replaced", data={"keys": sorted(result.overlay)})
            return True


def configure_for_build(
    current: DaemonParameters,
    requested: DaemonParameters,
    *,
    properties: Optional[SystemProperties] = None,
    trace: Optional[TraceEmitter] = None,
) -> bool:
    return BuildProcess(current, properties, trace).configure_for_build(requested)

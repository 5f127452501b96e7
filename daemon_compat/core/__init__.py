from .errors import ConfigError, DaemonCompatError, ValidationError
from .runtime_identity import JavaVersion, RuntimeIdentity
from .jvm_args import ImmutableArgs
from .classifier import ArgumentClassifier, Classification, classify
from .jvm_options import JvmOptions
from .daemon_parameters import DaemonParameters
from .system_properties import SystemProperties
from .build_process import BuildProcess, CompatibilityDecision, configure_for_build, evaluate

__all__ = [
  "ConfigError",
  "DaemonCompatError",
  "ValidationError",
  "JavaVersion",
  "RuntimeIdentity",
  "ImmutableArgs",
  "ArgumentClassifier",
  "Classification",
  "classify",
  "JvmOptions",
  "DaemonParameters",
  "SystemProperties",
  "BuildProcess",
  "CompatibilityDecision",
  "configure_for_build",
  "evaluate",
]

import os
import unittest
from pathlib import Path
from unittest import mock

from daemon_compat.core.daemon_parameters import DEFAULT_JVM_9_ARGS, DEFAULT_JVM_ARGS, INTERACTIVE_TOGGLE, DaemonParameters
from daemon_compat.core.errors import ValidationError
from daemon_compat.core.jvm_args import ImmutableArgs
from daemon_compat.core.jvm_options import DEBUG_AGENT_ARG
from daemon_compat.core.runtime_identity import JavaVersion, RuntimeIdentity


JDK8 = RuntimeIdentity(java_home="/opt/jdk-8", java_version=JavaVersion.parse("1.8"))
JDK11 = RuntimeIdentity(java_home="/opt/jdk-11-a", java_version=JavaVersion(11))


class TestJavaVersion(unittest.TestCase):
    def test_parse_forms(self) -> None:
        self.assertEqual(JavaVersion.parse("1.8").major, 8)
        self.assertEqual(JavaVersion.parse("1.8.0_292").major, 8)
        self.assertEqual(JavaVersion.parse("9").major, 9)
        self.assertEqual(JavaVersion.parse("11.0.2").major, 11)
        self.assertEqual(JavaVersion.parse("17-ea").major, 17)
        self.assertEqual(JavaVersion.parse(21).major, 21)
        self.assertLess(JavaVersion.parse("1.8"), JavaVersion.parse("9"))
        self.assertEqual(str(JavaVersion(8)), "1.8")

    def test_parse_invalid(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            JavaVersion.parse("latest")
        self.assertEqual(ctx.exception.code, "runtime.version_invalid")

    def test_runtime_identity_equality(self) -> None:
        self.assertEqual(JDK11, RuntimeIdentity("/opt/jdk-11-a", JavaVersion(11)))
        self.assertNotEqual(JDK11, RuntimeIdentity("/opt/jdk-11-b", JavaVersion(11)))


class TestDaemonParameters(unittest.TestCase):
    def test_pre_java9_defaults(self) -> None:
        params = DaemonParameters(JDK8).apply_defaults_for()
        self.assertEqual(params.effective_immutable_args(), ImmutableArgs.of(DEFAULT_JVM_ARGS))

    def test_java9_defaults(self) -> None:
        params = DaemonParameters(JDK11).apply_defaults_for()
        self.assertEqual(params.effective_immutable_args(), ImmutableArgs.of(DEFAULT_JVM_9_ARGS))

    def test_explicit_version_selects_defaults(self) -> None:
        params = DaemonParameters(JDK11).apply_defaults_for(JavaVersion(8))
        self.assertIn("-XX:MaxPermSize=256m", params.effective_immutable_args())

    def test_user_flag_replaces_defaults(self) -> None:
        params = DaemonParameters(JDK11).set_jvm_args(["-Xmx2048m"]).apply_defaults_for()
        self.assertTrue(params.has_user_immutable_arg_override)
        self.assertEqual(params.effective_immutable_args(), ImmutableArgs.of(["-Xmx2048m"]))

    def test_flags_set_after_defaults_still_replace_them(self) -> None:
        params = DaemonParameters(JDK11).apply_defaults_for()
        params.set_jvm_args(["-Xmx512m"])
        self.assertEqual(params.effective_immutable_args(), ImmutableArgs.of(["-Xmx512m"]))

    def test_property_only_args_keep_defaults(self) -> None:
        params = DaemonParameters(JDK11).set_jvm_args(["-Dfoo=bar", "-Dfile.encoding=UTF-8"]).apply_defaults_for()
        self.assertFalse(params.has_user_immutable_arg_override)
        self.assertTrue(params.has_user_immutable_system_property_override)
        self.assertEqual(
            params.effective_immutable_args(),
            ImmutableArgs.of(list(DEFAULT_JVM_9_ARGS) + ["-Dfile.encoding=UTF-8"]),
        )
        self.assertEqual(params.system_properties(), {"foo": "bar"})

    def test_extra_system_properties_set_property_override(self) -> None:
        params = DaemonParameters(JDK11, {"user.language": "de"})
        self.assertTrue(params.has_user_immutable_system_property_override)
        self.assertFalse(params.has_user_immutable_arg_override)
        self.assertEqual(params.immutable_system_properties(), {"user.language": "de"})

    def test_debug_toggle_adds_agent_without_arg_override(self) -> None:
        params = DaemonParameters(JDK11).set_debug(True)
        self.assertTrue(params.debug)
        self.assertFalse(params.has_user_immutable_arg_override)
        self.assertIn(DEBUG_AGENT_ARG, params.effective_immutable_args())

        params.set_jvm_args([DEBUG_AGENT_ARG]).set_debug(False)
        self.assertNotIn(DEBUG_AGENT_ARG, params.effective_immutable_args())

    def test_effective_system_properties_precedence(self) -> None:
        params = DaemonParameters(
            JDK11,
            {"javax.net.ssl.trustStore": "/t"},
            ambient_properties={"user.dir": "/work", "foo": "ambient"},
        )
        params.set_jvm_args(["-Dfoo=requested", "-Dfile.encoding=UTF-8"])
        self.assertEqual(
            params.effective_system_properties(),
            {"user.dir": "/work", "foo": "requested", "javax.net.ssl.trustStore": "/t"},
        )

    def test_immutable_and_mutable_views_are_disjoint(self) -> None:
        params = DaemonParameters(JDK11, {"file.encoding": "UTF-8", "a": "1"}).set_jvm_args(["-Db=2", "-Duser.country=DE"])
        self.assertFalse(set(params.immutable_system_properties()) & set(params.system_properties()))

    def test_single_use_args_exclude_daemon_only_properties(self) -> None:
        params = DaemonParameters(JDK11, {"javax.net.ssl.keyStore": "/k"}).set_jvm_args(["-Xmx1g"])
        self.assertIn("-Djavax.net.ssl.keyStore=/k", params.effective_immutable_args())
        self.assertEqual(params.effective_single_use_immutable_args(), ImmutableArgs.of(["-Xmx1g"]))

    def test_from_launch_args_applies_no_defaults(self) -> None:
        params = DaemonParameters.from_launch_args(JDK11, ["-Dfoo=bar"])
        self.assertEqual(len(params.effective_immutable_args()), 0)
        self.assertEqual(params.effective_jvm_args(), ["-Dfoo=bar"])

    def test_layout_and_environment(self) -> None:
        params = DaemonParameters(JDK11, user_home_dir=Path("/home/u/.gradle"))
        self.assertEqual(params.base_dir, Path("/home/u/.gradle/daemon"))
        params.set_base_dir(Path("/tmp/d"))
        self.assertEqual(params.base_dir, Path("/tmp/d"))

        params.set_environment({"A": "1"})
        self.assertEqual(params.environment, {"A": "1"})
        params.set_environment(None)
        self.assertEqual(params.environment, dict(os.environ))


class TestAmbientState(unittest.TestCase):
    def test_ambient_values_converted_like_launch_args(self) -> None:
        params = DaemonParameters(JDK11, ambient_properties={"a": None, "b": True})
        self.assertEqual(params.ambient_properties, {"a": "", "b": "true"})
        params.set_ambient_properties({"c": False})
        self.assertEqual(params.effective_system_properties(), {"c": "false"})

    def test_interactive_follows_attached_console(self) -> None:
        for attached in (True, False):
            with self.subTest(attached=attached), mock.patch("sys.stdin") as stdin:
                stdin.isatty.return_value = attached
                self.assertEqual(DaemonParameters(JDK11).interactive, attached)

    def test_interactive_without_stdin(self) -> None:
        with mock.patch("sys.stdin", None):
            self.assertFalse(DaemonParameters(JDK11).interactive)

    def test_interactive_toggle_property(self) -> None:
        with mock.patch("sys.stdin") as stdin:
            stdin.isatty.return_value = False
            self.assertTrue(DaemonParameters(JDK11, ambient_properties={INTERACTIVE_TOGGLE: "true"}).interactive)
            self.assertTrue(DaemonParameters(JDK11, ambient_properties={INTERACTIVE_TOGGLE: True}).interactive)
            self.assertFalse(DaemonParameters(JDK11, ambient_properties={INTERACTIVE_TOGGLE: "false"}).interactive)


if __name__ == "__main__":
    unittest.main()

import tempfile
import unittest
from pathlib import Path

from daemon_compat.contract_store import ContractStore
from daemon_compat.core.build_process import BuildProcess
from daemon_compat.core.daemon_parameters import DaemonParameters
from daemon_compat.core.runtime_identity import JavaVersion, RuntimeIdentity
from daemon_compat.core.system_properties import SystemProperties
from daemon_compat.resources import schemas_dir
from daemon_compat.trace.replay import Replay
from daemon_compat.trace.trace_emitter import TraceEmitter
from daemon_compat.trace.trace_store_jsonl import TraceStoreJSONL


JDK17 = RuntimeIdentity(java_home="/opt/jdk-17", java_version=JavaVersion(17))


class TestDecisionTrace(unittest.TestCase):
    def test_decisions_are_traced_and_validate(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            trace_path = Path(td) / "nested" / "trace.jsonl"
            trace = TraceEmitter(store=TraceStoreJSONL(trace_path), run_id="run_trace_1")
            current = DaemonParameters.from_launch_args(JDK17, ["-Xmx1g", "-Djavax.net.ssl.keyStorePassword=secret"])
            process = BuildProcess(current, SystemProperties(), trace)

            admit = DaemonParameters(JDK17).set_jvm_args(["-Dfoo=bar"])
            reject = DaemonParameters(JDK17).set_jvm_args(["-Xmx1g", "-Dfile.encoding=UTF-8"])
            self.assertTrue(process.configure_for_build(admit))
            self.assertFalse(process.configure_for_build(reject))

            replay = Replay(trace_path)
            events = list(replay.iter_events())
            self.assertEqual(
                [e["event_type"] for e in events],
                ["compatibility_decision", "overlay_applied", "compatibility_decision"],
            )
            self.assertTrue(all(e["run_id"] == "run_trace_1" for e in events))
            self.assertEqual(events[0]["decision"]["decision"], "admit")
            self.assertEqual(events[1]["data"]["keys"], ["foo"])
            self.assertEqual(events[2]["decision"]["decision"], "reject")
            self.assertIn("immutable_args.mismatch", events[2]["decision"]["reason_codes"])
            self.assertNotIn("secret", trace_path.read_text(encoding="utf-8"))

            decisions = list(replay.iter_events("compatibility_decision"))
            self.assertEqual(len(decisions), 2)

            store = ContractStore(schemas_dir())
            store.load()
            self.assertEqual(store.validate_jsonl_file("trace_event.schema.json", trace_path), [])

    def test_replay_of_missing_file_is_empty(self) -> None:
        self.assertEqual(list(Replay(Path("/nonexistent/trace.jsonl")).iter_events()), [])


if __name__ == "__main__":
    unittest.main()

"""Smoke tests for CLI wiring without audio hardware, ffmpeg or network."""

import io
import os
import subprocess
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest.mock import patch

from whisper_connector import cli_runtime, recording_session
from whisper_connector.app_config import AppConfig
from whisper_connector.device_lister import AudioDevice, DeviceLister
from whisper_connector.transcription_client import TranscriptionClient


class RuntimeWiringSmokeTests(unittest.TestCase):
    def _run(self, argv, config=None, devices=None, **patches):
        out = io.StringIO()
        err = io.StringIO()
        config = config or AppConfig(api_key="sk-test")
        devices = devices if devices is not None else [AudioDevice("Mic A"), AudioDevice("Mic B")]
        with (
            patch.object(cli_runtime.AppConfig, "from_env", return_value=config),
            patch.object(DeviceLister, "list_devices", return_value=devices) as list_devices,
            patch.object(cli_runtime, "close_shared_client") as close_shared_client,
            redirect_stdout(out),
            redirect_stderr(err),
        ):
            code = cli_runtime.run_cli(argv)
        close_shared_client.assert_called_once_with()
        return code, out.getvalue(), err.getvalue(), list_devices

    def test_devices_prints_one_based_list(self):
        code, out, _err, _ = self._run(["devices"])
        self.assertEqual(code, 0)
        self.assertEqual(out, "1. Mic A\n2. Mic B\n")

    def test_missing_api_key_exits_before_any_work(self):
        code, out, err, list_devices = self._run(["devices"], config=AppConfig(api_key=""))
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("OPENAI_AUTH_KEY", err)
        list_devices.assert_not_called()

    def test_unknown_device_fails_before_recording_spawns(self):
        with patch.object(recording_session.subprocess, "Popen") as popen:
            code, out, err, _ = self._run(["transcribe", "en", "Mic A"], devices=[AudioDevice("Mic B")])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("Unknown device", err)
        popen.assert_not_called()

    def test_unsupported_language_is_rejected(self):
        with patch.object(cli_runtime, "record") as record:
            code, _out, err, list_devices = self._run(["transcribe", "de", "Mic A"])
        self.assertEqual(code, 1)
        self.assertIn("Unknown language: de. Permitted languages: pl, en.", err)
        record.assert_not_called()
        list_devices.assert_not_called()

    def test_transcribe_records_uploads_and_prints_one_line(self):
        recorded = Path("/tmp/whisper_connector_audio_sample_test.mp3")
        with (
            patch.object(cli_runtime, "record", return_value=recorded) as record,
            patch.object(TranscriptionClient, "transcribe_file", return_value="hello world") as transcribe_file,
        ):
            code, out, _err, _ = self._run(["transcribe", "en", "Mic A"])

        self.assertEqual(code, 0)
        self.assertEqual(out, "hello world\n")
        self.assertEqual(record.call_args.args[1], "Mic A")
        audio_path = record.call_args.args[2]
        self.assertTrue(audio_path.name.startswith("whisper_connector_audio_sample_"))
        transcribe_file.assert_called_once_with("en", recorded)

    def test_cancelled_recording_exits_cleanly_without_output(self):
        with (
            patch.object(cli_runtime, "record", return_value=None),
            patch.object(TranscriptionClient, "transcribe_file") as transcribe_file,
        ):
            code, out, err, _ = self._run(["transcribe", "pl", "Mic B"])

        self.assertEqual(code, 0)
        self.assertEqual(out, "")
        self.assertNotIn("[ERROR]", err)
        transcribe_file.assert_not_called()

    def test_device_defaults_to_configured_device(self):
        config = AppConfig(api_key="sk-test", default_device="Mic B")
        with patch.object(cli_runtime, "record", return_value=None) as record:
            code, _out, _err, _ = self._run(["transcribe", "pl"], config=config)
        self.assertEqual(code, 0)
        self.assertEqual(record.call_args.args[1], "Mic B")

    def test_missing_device_prints_usage(self):
        err = io.StringIO()
        with (
            patch.object(cli_runtime.AppConfig, "from_env", return_value=AppConfig(api_key="sk-test")),
            patch.object(cli_runtime, "close_shared_client"),
            redirect_stderr(err),
        ):
            with self.assertRaises(SystemExit) as ctx:
                cli_runtime.run_cli(["transcribe", "en"])
        self.assertEqual(ctx.exception.code, 2)
        self.assertIn("usage:", err.getvalue())

    def test_missing_command_prints_usage(self):
        err = io.StringIO()
        with redirect_stderr(err), self.assertRaises(SystemExit) as ctx:
            cli_runtime.run_cli([])
        self.assertEqual(ctx.exception.code, 2)


_CANCELLED_RUN_SCRIPT = """
import sys
import threading
from unittest.mock import patch

from whisper_connector import cli_runtime, recording_session
from whisper_connector.app_config import AppConfig
from whisper_connector.cancellation import CancellationToken
from whisper_connector.device_lister import AudioDevice, DeviceLister

class FakeCaptureProcess:
    def __init__(self, args, **kwargs):
        self.stdin = None
        self.stderr = None
        self.returncode = None

    def kill(self):
        self.returncode = -9

    def wait(self, timeout=None):
        return self.returncode

    def poll(self):
        return self.returncode

class InterruptedSoonToken(CancellationToken):
    def __init__(self):
        super().__init__()
        timer = threading.Timer(0.3, self.cancel)
        timer.daemon = True
        timer.start()

with (
    patch.object(cli_runtime.AppConfig, "from_env", return_value=AppConfig(api_key="sk-test")),
    patch.object(DeviceLister, "list_devices", return_value=[AudioDevice("Mic A")]),
    patch.object(cli_runtime, "CancellationToken", InterruptedSoonToken),
    patch.object(recording_session.subprocess, "Popen", FakeCaptureProcess),
):
    code = cli_runtime.run_cli(["transcribe", "en", "Mic A"])
sys.exit(code)
"""


@unittest.skipIf(sys.platform == "win32", "stdin pipe semantics differ on Windows")
class CancelledRunProcessTests(unittest.TestCase):
    def test_cancelled_recording_exits_process_cleanly_with_stdin_open(self):
        root = Path(__file__).resolve().parent.parent
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(root), env.get("PYTHONPATH", "")]))
        with tempfile.TemporaryFile() as out, tempfile.TemporaryFile() as err:
            # stdin stays open so the stop-key reader is still blocked at shutdown
            proc = subprocess.Popen(
                [sys.executable, "-c", _CANCELLED_RUN_SCRIPT],
                cwd=root,
                env=env,
                stdin=subprocess.PIPE,
                stdout=out,
                stderr=err,
            )
            try:
                returncode = proc.wait(timeout=30)
            finally:
                if proc.poll() is None:
                    proc.kill()
                    proc.wait()
                proc.stdin.close()
            out.seek(0)
            err.seek(0)
            stdout = out.read().decode("utf-8", errors="replace")
            stderr = err.read().decode("utf-8", errors="replace")

        self.assertEqual(returncode, 0, stderr)
        self.assertEqual(stdout, "")
        self.assertNotIn("[ERROR]", stderr)
        self.assertNotIn("Fatal", stderr)


if __name__ == "__main__":
    unittest.main()

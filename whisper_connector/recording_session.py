"""Recording session driving the capture tool from spawn to finalized file.

A session owns exactly one capture subprocess. Recording runs until either a
key press arrives on our own stdin or the cancellation token fires, whichever
comes first:

- key press: ``q`` is sent to the capture tool so it finalizes the output
  container, then we wait for it to exit;
- cancellation: the capture tool is killed and no output is produced.
"""

import logging
import os
import subprocess
import sys
import threading
from contextlib import suppress
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from whisper_connector.cancellation import CancellationToken
from whisper_connector.capture_tool import QUIT_COMMAND, record_command
from whisper_connector.errors import IOFailedError, SpawnFailedError

if TYPE_CHECKING:
    from whisper_connector.app_config import AppConfig

logger = logging.getLogger(__name__)


class SessionState(Enum):
    IDLE = "idle"
    SPAWNING = "spawning"
    RECORDING = "recording"
    STOPPING = "stopping"
    FINALIZED = "finalized"
    CANCELLED = "cancelled"
    FAILED = "failed"


class StopTrigger(Enum):
    KEYPRESS = "keypress"
    CANCELLED = "cancelled"


def read_key_from_stdin() -> bytes:
    """Block until one byte is available on this process's stdin.

    Reads the raw descriptor: a daemon thread left blocked inside the buffered
    ``sys.stdin`` would hold its lock and abort interpreter shutdown.
    """
    if sys.stdin is None:
        raise ValueError("stdin is not available")
    return os.read(sys.stdin.fileno(), 1)


class _FirstTrigger:
    """Holds whichever stop trigger fires first; later ones are ignored."""

    def __init__(self):
        self._cond = threading.Condition()
        self._winner: Optional[StopTrigger] = None

    def fire(self, trigger: StopTrigger):
        with self._cond:
            if self._winner is None:
                self._winner = trigger
                self._cond.notify_all()

    def wait(self, poll_interval: float) -> StopTrigger:
        # Bounded waits keep the main thread responsive to signal handlers.
        with self._cond:
            while self._winner is None:
                self._cond.wait(timeout=poll_interval)
            return self._winner


class RecordingSession:
    """One recording attempt against a single input device."""

    def __init__(self, config: "AppConfig", device_name: str, output_path: Path | str):
        self.config = config
        self.device_name = device_name
        self.output_path = Path(output_path)
        self.state = SessionState.IDLE
        self._process: Optional[subprocess.Popen] = None
        self._drain_thread: Optional[threading.Thread] = None

    def __enter__(self) -> "RecordingSession":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # -- Lifecycle --

    def start(self):
        """Remove any stale output file and spawn the capture tool."""
        if self.state is not SessionState.IDLE:
            raise RuntimeError(f"Cannot start a session in state {self.state.value}")
        self._remove_output()
        self.state = SessionState.SPAWNING
        cmd = record_command(
            self.config.ffmpeg_bin,
            self.config.input_format,
            self.device_name,
            self.output_path,
        )
        logger.debug("Spawning capture tool: %s", cmd)
        try:
            self._process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            self.state = SessionState.FAILED
            raise SpawnFailedError(
                f"Could not spawn {self.config.ffmpeg_bin} process that listens to microphone: {e}"
            ) from e
        self._start_stderr_drain()
        self.state = SessionState.RECORDING
        logger.info("Recording from %r into %s", self.device_name, self.output_path)

    def await_stop(
        self,
        cancel_token: CancellationToken,
        key_reader: Optional[Callable[[], bytes]] = None,
        poll_interval: float = 0.1,
    ) -> StopTrigger:
        """Block until a key press or cancellation, whichever happens first.

        On cancellation the capture tool is killed and the session ends as
        CANCELLED. On a key press the session moves to STOPPING and
        ``finalize()`` performs the graceful stop.
        """
        if self.state is not SessionState.RECORDING:
            raise RuntimeError(f"Cannot await stop in state {self.state.value}")

        slot = _FirstTrigger()
        cancel_token.on_cancel(lambda: slot.fire(StopTrigger.CANCELLED))
        reader = key_reader or read_key_from_stdin

        def wait_for_key():
            try:
                reader()
            except (OSError, ValueError) as e:
                # EOF or an unreadable stdin ends the recording the same way a key does
                logger.debug("Reading stop key failed: %s", e)
            slot.fire(StopTrigger.KEYPRESS)

        threading.Thread(target=wait_for_key, name="stop-key-reader", daemon=True).start()
        trigger = slot.wait(poll_interval)
        logger.debug("Recording stop triggered by %s", trigger.value)

        if trigger is StopTrigger.CANCELLED:
            self._kill()
            # a killed capture tool leaves an unfinalized container behind
            self._remove_output()
            self.state = SessionState.CANCELLED
            logger.info("Recording cancelled")
        else:
            self.state = SessionState.STOPPING
        return trigger

    def finalize(self) -> Optional[Path]:
        """Ask the capture tool to finish writing and wait for it to exit.

        Returns the output path, or None when the session was cancelled.
        """
        if self.state is SessionState.CANCELLED:
            return None
        if self.state is not SessionState.STOPPING:
            raise RuntimeError(f"Cannot finalize a session in state {self.state.value}")

        process = self._process
        stdin = process.stdin
        if stdin is None:
            self._fail("Could not take stdin of the capture tool process.", step="stdin")

        try:
            stdin.write(QUIT_COMMAND)
        except (OSError, ValueError) as e:
            self._fail(f"Failed to send 'q' key to the capture tool: {e}", step="write", cause=e)
        try:
            stdin.flush()
        except (OSError, ValueError) as e:
            self._fail(f"Failed to flush stdin of the capture tool: {e}", step="flush", cause=e)

        try:
            returncode = process.wait(timeout=self.config.stop_timeout)
        except subprocess.TimeoutExpired as e:
            logger.warning("Capture tool did not exit within %ss, killing it", self.config.stop_timeout)
            self._kill()
            self._fail(
                f"Capture tool did not exit within {self.config.stop_timeout}s after 'q'.",
                step="wait",
                cause=e,
            )
        except OSError as e:
            self._fail(f"Failed waiting for the capture tool to exit: {e}", step="wait", cause=e)

        if returncode:
            logger.warning("Capture tool exited with code %s", returncode)
        self.state = SessionState.FINALIZED
        logger.info("Recording finalized: %s", self.output_path)
        return self.output_path

    def close(self):
        """Release the subprocess; kills it if it is still running."""
        process = self._process
        if process is None:
            return
        if process.poll() is None:
            logger.warning("Capture tool still running on session close, killing it")
            with suppress(OSError):
                process.kill()
                process.wait()
        if process.stdin is not None:
            with suppress(OSError, ValueError):
                process.stdin.close()
        # The process has exited, so the drain thread reaches EOF on its own.
        if self._drain_thread is not None:
            self._drain_thread.join(timeout=1)
            self._drain_thread = None
        if process.stderr is not None:
            with suppress(OSError, ValueError):
                process.stderr.close()
        self._process = None

    # -- Helpers --

    def _remove_output(self):
        try:
            self.output_path.unlink()
            logger.debug("Removed output file %s", self.output_path)
        except OSError:
            pass

    def _start_stderr_drain(self):
        stream = self._process.stderr
        if stream is None:
            return

        def drain():
            # Keeps the pipe from filling up and stalling the capture tool.
            try:
                for raw in iter(stream.readline, b""):
                    logger.debug("capture: %s", raw.decode("utf-8", errors="replace").rstrip())
            except (OSError, ValueError) as e:
                logger.debug("Stopped reading capture tool output: %s", e)

        self._drain_thread = threading.Thread(target=drain, name="capture-stderr", daemon=True)
        self._drain_thread.start()

    def _kill(self):
        try:
            self._process.kill()
            self._process.wait()
        except OSError as e:
            self._fail(f"Failed to kill the capture tool: {e}", step="kill", cause=e)

    def _fail(self, message: str, step: str, cause: Optional[BaseException] = None):
        self.state = SessionState.FAILED
        raise IOFailedError(message, step=step) from cause


def record(
    config: "AppConfig",
    device_name: str,
    output_path: Path | str,
    cancel_token: CancellationToken,
    key_reader: Optional[Callable[[], bytes]] = None,
) -> Optional[Path]:
    """Record until a key press (returns the file) or cancellation (returns None)."""
    with RecordingSession(config, device_name, output_path) as session:
        session.start()
        session.await_stop(cancel_token, key_reader=key_reader)
        return session.finalize()

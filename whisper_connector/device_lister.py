"""Audio input device discovery through the capture tool's diagnostic output."""

import logging
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING

from whisper_connector.capture_tool import list_devices_command
from whisper_connector.errors import IOFailedError, ParseFailedError, SpawnFailedError, ValidationFailedError

if TYPE_CHECKING:
    from whisper_connector.app_config import AppConfig

logger = logging.getLogger(__name__)

AUDIO_MARKER = " (audio)"
ALIAS_MARKER = "Alternative name"
NAME_START = ' "'
NAME_END = '" '


@dataclass(frozen=True)
class AudioDevice:
    """A named audio input source reported by the capture tool."""

    name: str


def _device_name_from_line(line: str) -> str | None:
    start = line.find(NAME_START)
    end = line.find(NAME_END)
    if start == -1 or end == -1:
        return None
    # start + 1 == end: both delimiters share one quote, there is no name between them
    if start > end or start + 1 == end:
        raise ParseFailedError(f"Malformed device line: {line!r}", line=line)
    return line[start + len(NAME_START):end]


def parse_device_listing(text: str, log_tag: str = "dshow @") -> list[AudioDevice]:
    """Extract audio devices from the capture tool's device listing.

    Only lines carrying ``log_tag`` and the ``(audio)`` marker are considered;
    alias lines are skipped. Lines without a quoted name are diagnostic noise.
    A line whose quotes are out of order fails the whole listing.
    """
    devices = []
    for line in text.splitlines():
        if log_tag not in line or AUDIO_MARKER not in line:
            continue
        if ALIAS_MARKER in line:
            continue
        name = _device_name_from_line(line)
        if name is None:
            continue
        devices.append(AudioDevice(name=name))
    return devices


class DeviceLister:
    """Runs the capture tool in enumeration mode and parses what it reports."""

    def __init__(self, config: "AppConfig"):
        self.config = config

    def list_devices(self) -> list[AudioDevice]:
        cmd = list_devices_command(self.config.ffmpeg_bin, self.config.input_format)
        logger.debug("Listing devices: %s", cmd)
        try:
            # The throwaway input makes ffmpeg exit non-zero, so the return code is ignored.
            result = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                check=False,
            )
        except OSError as e:
            raise SpawnFailedError(f"Could not spawn {self.config.ffmpeg_bin} to list devices: {e}") from e

        try:
            text = result.stderr.decode("utf-8")
        except UnicodeDecodeError as e:
            raise IOFailedError(f"Could not read device listing as text: {e}", step="read") from e

        devices = parse_device_listing(text, log_tag=self.config.log_tag)
        logger.info("Found %d audio input device(s)", len(devices))
        return devices

    def find_device(self, name: str) -> AudioDevice:
        """Return the listed device called ``name``."""
        devices = self.list_devices()
        for device in devices:
            if device.name == name:
                return device
        raise ValidationFailedError(
            f"Unknown device: {name!r}. Run the 'devices' command to see available input devices."
        )

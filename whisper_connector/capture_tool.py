"""Command lines for the ffmpeg capture tool."""

from pathlib import Path

# ffmpeg stops recording and finalizes the container when it reads this on stdin
QUIT_COMMAND = b"q"


def list_devices_command(ffmpeg_bin: str, input_format: str) -> list[str]:
    """Enumerate input devices; ffmpeg reports them on stderr."""
    return [
        ffmpeg_bin,
        "-hide_banner",
        "-list_devices", "true",
        "-f", input_format,
        "-i", "dummy",
    ]


def record_command(ffmpeg_bin: str, input_format: str, device_name: str, output_path: Path | str) -> list[str]:
    """Record from an audio input device into output_path, overwriting it."""
    return [
        ffmpeg_bin,
        "-y",
        "-f", input_format,
        "-i", f"audio={device_name}",
        str(output_path),
    ]

"""Headless CLI runtime wiring for whisper-connector."""

import argparse
import logging
import sys
from collections.abc import Sequence

from whisper_connector.app_config import AppConfig
from whisper_connector.cancellation import CancellationToken, cancel_on_interrupt
from whisper_connector.device_lister import DeviceLister
from whisper_connector.errors import WhisperConnectorError
from whisper_connector.http_client import close_shared_client
from whisper_connector.recording_session import record
from whisper_connector.temp_audio import make_temp_audio_path
from whisper_connector.transcription_client import TranscriptionClient

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="whisper-connector",
        description="Record the microphone with ffmpeg and transcribe it with Whisper",
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("devices", help="List available audio input devices")

    p_transcribe = sub.add_parser("transcribe", help="Record from a device and transcribe it")
    p_transcribe.add_argument("language", help="Spoken language code (pl or en)")
    p_transcribe.add_argument(
        "device",
        nargs="?",
        default=None,
        help="Input device name as printed by 'devices' (default: WHISPER_CONNECTOR_DEVICE)",
    )
    return parser


def _configure_logging(level_name: str, log_file: str = ""):
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=getattr(logging, str(level_name or "").upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        handlers=handlers,
    )


def cmd_devices(config: AppConfig) -> int:
    """Print available input devices, numbered from 1."""
    devices = DeviceLister(config).list_devices()
    if not devices:
        print("[INFO] No audio input devices found.", file=sys.stderr)
    for index, device in enumerate(devices, start=1):
        print(f"{index}. {device.name}")
    return 0


def cmd_transcribe(config: AppConfig, language: str, device_name: str) -> int:
    """Record until Enter is pressed, then print the transcription."""
    config.validate_language(language)
    DeviceLister(config).find_device(device_name)

    _, audio_path = make_temp_audio_path()
    token = CancellationToken()
    print("[INFO] Recording... press Enter to stop, Ctrl+C to cancel.", file=sys.stderr)
    with cancel_on_interrupt(token):
        recorded = record(config, device_name, audio_path, token)
    if recorded is None:
        logger.info("Recording cancelled by user, nothing to transcribe")
        return 0

    text = TranscriptionClient(config).transcribe_file(language, recorded)
    print(text)
    sys.stdout.flush()
    return 0


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        config = AppConfig.from_env()
        _configure_logging(args.log_level or config.log_level, config.log_file)
        config.require_api_key()

        if args.command == "devices":
            return cmd_devices(config)
        if args.command == "transcribe":
            device_name = args.device or config.default_device
            if not device_name:
                parser.error("transcribe requires a device name (or set WHISPER_CONNECTOR_DEVICE)")
            return cmd_transcribe(config, args.language, device_name)
        parser.error(f"Unknown command: {args.command}")
        return 2
    except WhisperConnectorError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1
    finally:
        close_shared_client()


def main():
    sys.exit(run_cli())

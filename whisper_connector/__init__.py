"""Public whisper_connector APIs for composition roots and external integrations."""

from whisper_connector.app_config import AppConfig
from whisper_connector.cancellation import CancellationToken
from whisper_connector.device_lister import AudioDevice, DeviceLister, parse_device_listing
from whisper_connector.errors import (
    ConfigMissingError,
    HttpStatusFailedError,
    IOFailedError,
    ParseFailedError,
    SpawnFailedError,
    ValidationFailedError,
    WhisperConnectorError,
)
from whisper_connector.http_client import close_shared_client, get_shared_client
from whisper_connector.recording_session import RecordingSession, SessionState, StopTrigger, record
from whisper_connector.transcription_client import TranscriptionClient

__all__ = [
    "AppConfig",
    "AudioDevice",
    "CancellationToken",
    "DeviceLister",
    "RecordingSession",
    "SessionState",
    "StopTrigger",
    "TranscriptionClient",
    "parse_device_listing",
    "record",
    "get_shared_client",
    "close_shared_client",
    "WhisperConnectorError",
    "SpawnFailedError",
    "IOFailedError",
    "ParseFailedError",
    "HttpStatusFailedError",
    "ConfigMissingError",
    "ValidationFailedError",
]

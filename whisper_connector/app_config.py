"""Application configuration as an injectable dataclass."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from whisper_connector.errors import ConfigMissingError, ValidationFailedError

DEFAULT_API_URL = "https://api.openai.com/v1/audio/transcriptions"
SUPPORTED_LANGUAGES = ("pl", "en")


def _parse_timeout(value: str | None) -> float | None:
    value = (value or "").strip()
    if not value:
        return None
    try:
        timeout = float(value)
    except ValueError as e:
        raise ValidationFailedError(f"Invalid WHISPER_CONNECTOR_STOP_TIMEOUT value: {value!r}") from e
    return timeout if timeout > 0 else None


@dataclass
class AppConfig:
    """Application configuration loaded from environment variables."""

    # API
    api_key: str = ""
    api_url: str = DEFAULT_API_URL
    model: str = "whisper-1"
    languages: tuple[str, ...] = SUPPORTED_LANGUAGES

    # Capture tool
    ffmpeg_bin: str = "ffmpeg"
    input_format: str = "dshow"
    default_device: str = ""
    # None keeps the wait for the capture tool to exit unbounded
    stop_timeout: float | None = None

    # Logging
    log_level: str = "WARNING"
    log_file: str = ""

    @property
    def log_tag(self) -> str:
        """Per-line tag the capture tool prints in front of its device listing."""
        return f"{self.input_format} @"

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigMissingError("Required OPENAI_AUTH_KEY environment variable has not been set.")
        return self.api_key

    def validate_language(self, language: str) -> str:
        if language not in self.languages:
            raise ValidationFailedError(
                f"Unknown language: {language}. Permitted languages: {', '.join(self.languages)}."
            )
        return language

    @staticmethod
    def from_env() -> "AppConfig":
        """Load config from .env file and environment variables."""
        load_dotenv()
        return AppConfig(
            api_key=os.getenv("OPENAI_AUTH_KEY", "").strip(),
            api_url=os.getenv("WHISPER_CONNECTOR_API_URL", DEFAULT_API_URL),
            model=os.getenv("WHISPER_CONNECTOR_MODEL", "whisper-1"),
            ffmpeg_bin=os.getenv("WHISPER_CONNECTOR_FFMPEG", "ffmpeg"),
            input_format=os.getenv("WHISPER_CONNECTOR_INPUT_FORMAT", "dshow"),
            default_device=os.getenv("WHISPER_CONNECTOR_DEVICE", "").strip(),
            stop_timeout=_parse_timeout(os.getenv("WHISPER_CONNECTOR_STOP_TIMEOUT")),
            log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
            log_file=os.getenv("LOG_FILE", "").strip(),
        )

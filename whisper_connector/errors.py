"""Error types raised by whisper_connector.

Every error is terminal to the current invocation; the CLI runtime turns them
into a message on stderr and a non-zero exit code.
"""


class WhisperConnectorError(RuntimeError):
    """Base class for all whisper_connector failures."""


class SpawnFailedError(WhisperConnectorError):
    """Raised when the capture tool process cannot be started."""


class IOFailedError(WhisperConnectorError):
    """Raised when reading, writing, flushing or waiting on a stream fails."""

    def __init__(self, message: str, step: str = ""):
        super().__init__(message)
        self.step = step


class ParseFailedError(WhisperConnectorError):
    """Raised for a malformed device listing line or transcription payload."""

    def __init__(self, message: str, line: str | None = None):
        super().__init__(message)
        self.line = line


class HttpStatusFailedError(WhisperConnectorError):
    """Raised when the transcription endpoint answers with a non-2xx status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class ConfigMissingError(WhisperConnectorError):
    """Raised when a required setting (e.g. the API key) is absent."""


class ValidationFailedError(WhisperConnectorError):
    """Raised for an unsupported language code or unknown device name."""

"""Temporary audio file naming."""

import secrets
import string
import tempfile
from pathlib import Path

FILE_PREFIX = "whisper_connector_audio_sample_"
FILE_EXTENSION = ".mp3"
SUFFIX_LENGTH = 8
_ALPHABET = string.ascii_letters + string.digits


def make_temp_audio_path(directory: Path | str | None = None) -> tuple[str, Path]:
    """Return (file name, absolute path) for a fresh recording in the temp dir."""
    seed = "".join(secrets.choice(_ALPHABET) for _ in range(SUFFIX_LENGTH))
    file_name = f"{FILE_PREFIX}{seed}{FILE_EXTENSION}"
    base = Path(directory) if directory is not None else Path(tempfile.gettempdir())
    return file_name, base.resolve() / file_name

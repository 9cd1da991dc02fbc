import json
import logging
from pathlib import Path
from typing import IO, TYPE_CHECKING, Optional

import httpx

from whisper_connector.errors import HttpStatusFailedError, IOFailedError, ParseFailedError
from whisper_connector.http_client import get_shared_client

if TYPE_CHECKING:
    from whisper_connector.app_config import AppConfig

logger = logging.getLogger(__name__)

AUDIO_MIME_TYPE = "audio/mpeg"


class TranscriptionClient:
    """Uploads recordings to the Whisper transcription API."""

    def __init__(self, config: "AppConfig", client: Optional[httpx.Client] = None):
        self.api_key = config.api_key
        self.api_url = config.api_url
        self.model = config.model
        self._client = client

    def _headers(self):
        return {"Authorization": f"Bearer {self.api_key}"}

    @staticmethod
    def _error_detail(resp: httpx.Response) -> str:
        try:
            payload = json.loads(resp.content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            return ""
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict) and isinstance(error.get("message"), str):
                return error["message"].strip()
            if isinstance(error, str):
                return error.strip()
        return ""

    @staticmethod
    def _http_error_message(resp: httpx.Response) -> str:
        status_label = f"Transcription request failed with HTTP {resp.status_code}"
        detail = TranscriptionClient._error_detail(resp)
        if detail:
            return f"{status_label}: {detail}"
        return status_label

    @staticmethod
    def _extract_text(resp: httpx.Response) -> str:
        try:
            payload = resp.json()
        except ValueError as e:
            raise ParseFailedError(f"Transcription response could not be parsed as JSON: {e}") from e
        if not isinstance(payload, dict) or not isinstance(payload.get("text"), str):
            raise ParseFailedError("Transcription response JSON did not contain a 'text' field.")
        return payload["text"]

    def transcribe_file(self, language: str, path: Path | str) -> str:
        """Transcribe an audio file from disk."""
        path = Path(path)
        try:
            f = open(path, "rb")
        except OSError as e:
            raise IOFailedError(f"Could not read recorded audio sample: {e}", step="open") from e
        with f:
            return self.transcribe(language, path.name, f)

    def transcribe(self, language: str, file_name: str, file_obj: IO[bytes]) -> str:
        """Upload ``file_obj`` and return the transcribed text as sent by the API."""
        data = {
            "model": self.model,
            "language": language,
        }
        files = {"file": (file_name, file_obj, AUDIO_MIME_TYPE)}
        client = self._client or get_shared_client()
        logger.debug("STT request -> %s | model=%s language=%s file=%s", self.api_url, self.model, language, file_name)
        try:
            resp = client.post(
                self.api_url,
                headers=self._headers(),
                data=data,
                files=files,
            )
        except httpx.RequestError as e:
            raise IOFailedError(f"Transcription request failed: {e}", step="request") from e

        if not resp.is_success:
            message = self._http_error_message(resp)
            logger.warning("%s", message)
            raise HttpStatusFailedError(message, status_code=resp.status_code)

        text = self._extract_text(resp)
        logger.info("Transcription received (%d chars)", len(text))
        return text

"""Speech-to-text through the OpenAI Whisper API."""

from __future__ import annotations

import logging

from openai import AsyncOpenAI, OpenAIError

from .config import VoiceConfig
from .errors import TranscriptionError, VoiceNotConfiguredError

logger = logging.getLogger(__name__)


class Transcriber:
    """Single-shot audio → text calls, parameterized by language."""

    def __init__(self, config: VoiceConfig, client: AsyncOpenAI | None = None) -> None:
        self._config = config
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._config.openai_api_key:
                raise VoiceNotConfiguredError("OPENAI_API_KEY is not set")
            self._client = AsyncOpenAI(api_key=self._config.openai_api_key)
        return self._client

    async def transcribe(
        self,
        audio: bytes,
        *,
        language: str = "en",
        filename: str = "recording.webm",
        content_type: str = "audio/webm",
    ) -> str:
        client = self._get_client()
        try:
            result = await client.audio.transcriptions.create(
                model=self._config.transcription_model,
                file=(filename, audio, content_type),
                language=language,
            )
        except OpenAIError as e:
            logger.error("Whisper API error: %s", e)
            raise TranscriptionError(str(e)) from e
        return result.text

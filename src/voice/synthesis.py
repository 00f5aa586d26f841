"""Text-to-speech through the ElevenLabs API."""

from __future__ import annotations

import logging

import httpx

from .config import VoiceConfig
from .errors import SynthesisError, VoiceNotConfiguredError

logger = logging.getLogger(__name__)


class SpeechSynthesizer:
    """Single-shot text → MP3 calls with a voice chosen per language."""

    def __init__(self, config: VoiceConfig, http_client: httpx.AsyncClient | None = None) -> None:
        self._config = config
        self._http_client = http_client

    def voice_for(self, language: str) -> str | None:
        if language == "es":
            return self._config.elevenlabs_voice_id_es or self._config.elevenlabs_voice_id
        return self._config.elevenlabs_voice_id

    async def synthesize(self, text: str, language: str = "en") -> bytes:
        api_key = self._config.elevenlabs_api_key
        voice_id = self.voice_for(language)
        if not api_key or not voice_id:
            raise VoiceNotConfiguredError("ElevenLabs not configured")

        url = f"{self._config.elevenlabs_base_url}/text-to-speech/{voice_id}"
        headers = {
            "Accept": "audio/mpeg",
            "Content-Type": "application/json",
            "xi-api-key": api_key,
        }
        payload = {
            "text": text,
            "model_id": self._config.elevenlabs_model,
            "voice_settings": self._config.voice_settings.model_dump(),
        }
        try:
            if self._http_client is not None:
                response = await self._http_client.post(url, headers=headers, json=payload)
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout_seconds) as client:
                    response = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error("ElevenLabs request failed: %s", e)
            raise SynthesisError(str(e)) from e

        if response.status_code >= 400:
            logger.error("ElevenLabs API error (%d): %s", response.status_code, response.text)
            raise SynthesisError("Synthesis failed", status_code=response.status_code)
        return response.content

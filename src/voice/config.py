from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


class VoiceSettings(BaseModel):
    """ElevenLabs voice tuning sent with every synthesis request."""

    stability: float = 0.5
    similarity_boost: float = 0.75
    style: float = 0.0
    use_speaker_boost: bool = True


class VoiceConfig(BaseModel):
    """Credentials and models for the transcription and synthesis services."""

    openai_api_key: str | None = Field(default=None, description="Key for the Whisper API.")
    transcription_model: str = "whisper-1"
    elevenlabs_api_key: str | None = None
    elevenlabs_voice_id: str | None = Field(default=None, description="Default (English) voice.")
    elevenlabs_voice_id_es: str | None = Field(
        default=None,
        description="Spanish voice; falls back to the default voice when unset.",
    )
    elevenlabs_model: str = Field(default="eleven_turbo_v2_5", description="Fast model for real-time.")
    elevenlabs_base_url: str = "https://api.elevenlabs.io/v1"
    voice_settings: VoiceSettings = Field(default_factory=VoiceSettings)
    timeout_seconds: float = 30.0

    @classmethod
    def from_env(cls) -> VoiceConfig:
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            elevenlabs_api_key=os.getenv("ELEVENLABS_API_KEY") or None,
            elevenlabs_voice_id=os.getenv("ELEVENLABS_VOICE_ID") or None,
            elevenlabs_voice_id_es=os.getenv("ELEVENLABS_VOICE_ID_ES") or None,
        )

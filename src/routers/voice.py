"""Voice router: speech-to-text before the concierge, text-to-speech after it."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field

from src.concierge.locales import DEFAULT_LOCALE, Locale
from src.voice import (
    SpeechSynthesizer,
    SynthesisError,
    Transcriber,
    TranscriptionError,
    VoiceNotConfiguredError,
)

from .dependencies import get_synthesizer, get_transcriber

router = APIRouter(prefix="/api", tags=["voice"])


class TranscribeResponse(BaseModel):
    text: str


class SynthesizeRequest(BaseModel):
    """Request body for POST /api/synthesize."""

    text: str = Field("", description="Text to speak")
    language: Locale = Field(DEFAULT_LOCALE, description="Selects the voice")


@router.post("/transcribe", response_model=TranscribeResponse)
async def transcribe(
    audio: UploadFile | None = File(None),
    language: Locale = Form(DEFAULT_LOCALE),
    transcriber: Transcriber = Depends(get_transcriber),
) -> TranscribeResponse:
    """Convert a recording to text with Whisper."""
    if audio is None:
        raise HTTPException(status_code=400, detail="No audio file provided")
    data = await audio.read()
    if not data:
        raise HTTPException(status_code=400, detail="No audio file provided")
    try:
        text = await transcriber.transcribe(
            data,
            language=language,
            content_type=audio.content_type or "audio/webm",
        )
    except VoiceNotConfiguredError as e:
        raise HTTPException(status_code=500, detail="Transcription not configured") from e
    except TranscriptionError as e:
        raise HTTPException(status_code=502, detail="Transcription failed") from e
    return TranscribeResponse(text=text)


@router.post("/synthesize", response_class=Response)
async def synthesize(
    request: SynthesizeRequest,
    synthesizer: SpeechSynthesizer = Depends(get_synthesizer),
) -> Response:
    """Convert concierge text to MP3 speech with ElevenLabs."""
    if not request.text.strip():
        raise HTTPException(status_code=400, detail="No text provided")
    try:
        audio = await synthesizer.synthesize(request.text, language=request.language)
    except VoiceNotConfiguredError as e:
        raise HTTPException(status_code=500, detail="ElevenLabs not configured") from e
    except SynthesisError as e:
        raise HTTPException(status_code=502, detail="Synthesis failed") from e
    return Response(content=audio, media_type="audio/mpeg")

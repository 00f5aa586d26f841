"""Exceptions raised by the speech collaborators."""

from __future__ import annotations


class VoiceError(Exception):
    """Base class for transcription and synthesis failures."""


class VoiceNotConfiguredError(VoiceError):
    """Credentials or voice ids are missing."""


class TranscriptionError(VoiceError):
    """The speech-to-text service rejected or failed the request."""


class SynthesisError(VoiceError):
    """The text-to-speech service rejected or failed the request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

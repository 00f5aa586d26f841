"""Speech collaborators: transcription before the concierge, synthesis after it."""

from .config import VoiceConfig, VoiceSettings
from .errors import SynthesisError, TranscriptionError, VoiceError, VoiceNotConfiguredError
from .synthesis import SpeechSynthesizer
from .transcription import Transcriber

__all__ = [
    "SpeechSynthesizer",
    "SynthesisError",
    "Transcriber",
    "TranscriptionError",
    "VoiceConfig",
    "VoiceError",
    "VoiceNotConfiguredError",
    "VoiceSettings",
]

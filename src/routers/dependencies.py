"""Process-wide collaborators, injectable per route with FastAPI Depends."""

from __future__ import annotations

from src.concierge.persistence import ConciergeStore, get_default_store
from src.concierge.providers import LLMProvider
from src.concierge.recorder import ExchangeRecorder
from src.concierge.tools import ToolRegistry, get_default_registry
from src.voice import SpeechSynthesizer, Transcriber, VoiceConfig

_recorder: ExchangeRecorder | None = None


def get_store() -> ConciergeStore:
    return get_default_store()


def get_registry() -> ToolRegistry:
    return get_default_registry()


def get_recorder() -> ExchangeRecorder:
    global _recorder
    if _recorder is None:
        _recorder = ExchangeRecorder(get_default_store())
    return _recorder


def get_llm_provider() -> LLMProvider | None:
    """None lets the loop resolve the provider from the model string."""
    return None


def get_transcriber() -> Transcriber:
    return Transcriber(VoiceConfig.from_env())


def get_synthesizer() -> SpeechSynthesizer:
    return SpeechSynthesizer(VoiceConfig.from_env())


async def drain_recorder() -> None:
    """Wait for pending exchange writes, if the recorder was ever used."""
    if _recorder is not None:
        await _recorder.drain()

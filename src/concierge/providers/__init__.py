"""LLM providers: pluggable backends for the concierge loop."""

from .base import LLMProvider, StreamChunk
from .ollama import OllamaProvider
from .openai_provider import OpenAIProvider

__all__ = [
    "LLMProvider",
    "StreamChunk",
    "OllamaProvider",
    "OpenAIProvider",
]

"""LLM facade: provider resolution and error wrapping for the loop."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any, Tuple

from .config import DEFAULT_MODEL
from .errors import ModelInvocationError
from .models import Message
from .providers import LLMProvider, OllamaProvider, OpenAIProvider, StreamChunk

logger = logging.getLogger(__name__)

_provider_cache: dict[str, LLMProvider] = {}


def split_model(model: str | None) -> Tuple[str, str]:
    """
    Split a model string into (provider_name, model_name).

    Expected formats:
    - "provider:model_name" (e.g. "openai:gpt-4o", "ollama:llama3.2")
    - "model_name" (no colon) → treated as an OpenAI model.
    """
    effective = (model or DEFAULT_MODEL).strip()
    if ":" not in effective:
        return "openai", effective
    provider_name, raw_model = effective.split(":", 1)
    return provider_name.strip().lower(), raw_model.strip()


def get_provider_for_model(model: str | None) -> Tuple[LLMProvider, str]:
    """Resolve provider (cached per process) and underlying model name."""
    provider_name, model_name = split_model(model)

    if provider_name not in _provider_cache:
        if provider_name == "ollama":
            _provider_cache[provider_name] = OllamaProvider(default_model=model_name)
        else:
            _provider_cache[provider_name] = OpenAIProvider()
    return _provider_cache[provider_name], model_name


async def stream_chat(
    messages: list[Message],
    model: str | None = None,
    tools: list[dict[str, Any]] | None = None,
    provider: LLMProvider | None = None,
    **kwargs: Any,
) -> AsyncIterator[StreamChunk]:
    """Stream chat. Uses explicit provider if given, otherwise infers from model.

    Any provider failure is raised as ModelInvocationError.
    """
    if provider is None:
        provider, model = get_provider_for_model(model)
    else:
        _, model = split_model(model)
    try:
        async for chunk in provider.stream_chat(messages, model=model, tools=tools, **kwargs):
            yield chunk
    except ModelInvocationError:
        raise
    except Exception as e:
        logger.error("Model invocation failed (%s): %s", model, e)
        raise ModelInvocationError(str(e)) from e

"""Tides concierge: context assembly, model–tool loop, streaming, and exchange recording."""

from .context import assemble_context, pending_turns, to_model_messages
from .errors import ConciergeError, ModelInvocationError, StorageError, UnknownToolError
from .loop import LoopEvent, LoopOptions, run_loop
from .models import Exchange, Message, Part, ToolResult, Turn
from .providers import LLMProvider, OllamaProvider, OpenAIProvider, StreamChunk
from .recorder import ExchangeRecorder
from .streaming import ResponseStream
from .tools import BaseTool, ToolRegistry, build_registry, get_default_registry

__all__ = [
    "assemble_context",
    "pending_turns",
    "to_model_messages",
    "run_loop",
    "LoopEvent",
    "LoopOptions",
    "ResponseStream",
    "ExchangeRecorder",
    "BaseTool",
    "ToolRegistry",
    "build_registry",
    "get_default_registry",
    "Exchange",
    "Message",
    "Part",
    "ToolResult",
    "Turn",
    "LLMProvider",
    "OllamaProvider",
    "OpenAIProvider",
    "StreamChunk",
    "ConciergeError",
    "ModelInvocationError",
    "StorageError",
    "UnknownToolError",
]

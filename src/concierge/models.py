"""Data models for turns, exchanges, chat messages, and tools."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Turns (display / persisted form)
# ---------------------------------------------------------------------------


class Part(BaseModel):
    """One ordered piece of a turn: plain text, a tool invocation, or its result."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text", "tool-call", "tool-result"] = "text"
    text: str | None = None
    tool_call_id: str | None = None
    tool_name: str | None = None
    args: dict[str, Any] | None = None
    result: Any = None


class Turn(BaseModel):
    """A user, assistant, or tool turn. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant", "tool"]
    parts: list[Part] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _content_shorthand(cls, data: Any) -> Any:
        # {"role": "user", "content": "hi"} -> a single text part
        if isinstance(data, dict) and "parts" not in data and "content" in data:
            data = dict(data)
            content = data.pop("content")
            data["parts"] = [{"type": "text", "text": content}] if content else []
        return data

    @classmethod
    def text_turn(cls, role: str, text: str) -> Turn:
        return cls(role=role, parts=[Part(type="text", text=text)])

    @property
    def text(self) -> str:
        """Concatenated text parts."""
        return "".join(p.text or "" for p in self.parts if p.type == "text")


class Exchange(BaseModel):
    """One persisted user/assistant unit for a session."""

    session_id: str
    unit_number: str | None = None
    turns: list[Turn] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive timestamps are stored UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


# ---------------------------------------------------------------------------
# Messages (model-facing form)
# ---------------------------------------------------------------------------


class Message(BaseModel):
    """A single message in a conversation."""

    role: str  # "system" | "user" | "assistant" | "tool"
    content: str = ""
    tool_calls: list[dict[str, Any]] | None = None
    tool_call_id: str | None = None
    name: str | None = None


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@dataclass
class ToolResult:
    """Result of a single tool execution."""

    success: bool
    content: str | None = None
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_text(self) -> str:
        """Text fed back to the model as the tool message."""
        if self.success:
            return self.content or ""
        return f"Error: {self.error}"


@dataclass
class ToolDef:
    """Tool definition for the orchestrator and LLM."""

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema

    def to_tool_schema(self) -> dict[str, Any]:
        """Standard function-calling schema (OpenAI-style) for any LLM provider."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

"""Exceptions raised by the concierge core."""

from __future__ import annotations


class ConciergeError(Exception):
    """Base class for concierge failures."""


class UnknownToolError(ConciergeError):
    """The model asked for a tool that is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class StorageError(ConciergeError):
    """The backing store failed to read or write."""


class ModelInvocationError(ConciergeError):
    """The language model service is unreachable or returned an error."""

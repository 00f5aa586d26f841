"""Utilities for loading the per-locale system prompts from disk."""

from __future__ import annotations

from pathlib import Path

from .config import SYSTEM_PROMPT_PATHS
from .locales import DEFAULT_LOCALE, UNIT_LINES, localized

_cached_prompts: dict[str, str] = {}


def _read_file(path: Path) -> str:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        return ""
    return text.strip()


def get_base_prompt(locale: str | None) -> str:
    """Return the prompt template for a locale, cached after first read.

    Unknown locales use the default locale's prompt. If the prompt file does
    not exist or cannot be read, returns an empty string.
    """
    key = locale if locale in SYSTEM_PROMPT_PATHS else DEFAULT_LOCALE
    if key not in _cached_prompts:
        _cached_prompts[key] = _read_file(SYSTEM_PROMPT_PATHS[key])
    return _cached_prompts[key]


def get_system_prompt(locale: str | None = None, unit_number: str | None = None) -> str:
    """System instructions for one request: locale prompt plus the resident's unit."""
    prompt = get_base_prompt(locale)
    if unit_number:
        unit_line = localized(UNIT_LINES, locale).format(unit=unit_number)
        prompt = f"{prompt}\n\n{unit_line}".strip()
    return prompt

"""Concierge configuration: paths and defaults."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

from main_config import (
    CONCIERGE_DB_PATH as _CONCIERGE_DB_PATH,
    DB_DIR as _DB_DIR,
    PROMPTS_DIR as _PROMPTS_DIR,
    SYSTEM_PROMPT_PATHS as _SYSTEM_PROMPT_PATHS,
)

load_dotenv()

# Path objects for use in this package (main_config uses os.path strings)
DB_DIR = Path(_DB_DIR)
CONCIERGE_DB_PATH = Path(_CONCIERGE_DB_PATH)
PROMPTS_DIR = Path(_PROMPTS_DIR)
SYSTEM_PROMPT_PATHS = {locale: Path(p) for locale, p in _SYSTEM_PROMPT_PATHS.items()}

DEFAULT_MODEL = os.getenv("CONCIERGE_MODEL") or "openai:gpt-4o"
DEFAULT_MAX_STEPS = 5
HISTORY_LIMIT = 10

PACKAGE_STATUS_PENDING = "pending"
PACKAGE_STATUS_PICKED_UP = "picked_up"

AMENITIES = ("tennis_court", "pool", "gym", "party_room")


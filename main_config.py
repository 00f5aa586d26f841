import os
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
DB_DIR = os.path.join(BASE_DIR, "db")
CONCIERGE_DB_PATH = os.getenv("CONCIERGE_DB_PATH") or os.path.join(DB_DIR, "concierge.db")

PROMPTS_DIR = os.path.join(BASE_DIR, "prompts")
SYSTEM_PROMPT_PATHS = {
    "en": os.path.join(PROMPTS_DIR, "system_en.md"),
    "es": os.path.join(PROMPTS_DIR, "system_es.md"),
}

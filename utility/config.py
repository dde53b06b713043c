"""
Runtime configuration for the translation service.
Values come from the environment (a local .env is loaded first).
"""
import os

from dotenv import load_dotenv

load_dotenv()

# -------------------------
# COMPLETION SERVICE
# -------------------------
OPENAI_API_KEY_ENV = "OPENAI_API_KEY"  # read at request time, never logged
OPENAI_API_URL = os.getenv("OPENAI_API_URL", "https://api.openai.com/v1/chat/completions")
OPENAI_MODEL = "gpt-3.5-turbo"
MAX_TOKENS = 100

# -------------------------
# TRANSLATION PROXY
# -------------------------
# Unset: the WebSocket handler talks to this app's own /translate in-process
TRANSLATION_PROXY_URL = os.getenv("TRANSLATION_PROXY_URL")
TRANSLATE_PATH = "/translate"

# -------------------------
# SESSIONS
# -------------------------
SESSION_TTL_HOURS = int(os.getenv("SESSION_TTL_HOURS", "2"))
SESSION_CLEANUP_INTERVAL = int(os.getenv("SESSION_CLEANUP_INTERVAL", "300"))  # seconds

# -------------------------
# SERVER
# -------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))


def get_openai_api_key() -> str | None:
    """Looked up on every call so a rotated key is picked up without a restart."""
    return os.getenv(OPENAI_API_KEY_ENV)

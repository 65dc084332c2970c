"""Defaults for paths, timings and limits.

The store path and delays can be overridden from the environment; the CLI
flags in ``main.py`` take precedence over both.
"""

import os
from pathlib import Path


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


# Default storage location
CACHE_DIR = Path.home() / ".cache" / "chat-composer"
DEFAULT_STORE_PATH = Path(os.environ.get("CHAT_COMPOSER_STORE") or CACHE_DIR / "sessions.json")
LOG_FILENAME = "chat-composer.log"

# Sessions
DEFAULT_TITLE = "New Chat"
TITLE_MAX_LENGTH = 50
TITLE_ELLIPSIS = "..."

# Streaming (seconds)
STREAM_DELAY = _env_float("CHAT_COMPOSER_STREAM_DELAY", 0.025)
SESSION_SETTLE_DELAY = _env_float("CHAT_COMPOSER_SETTLE_DELAY", 0.1)

# Autocomplete
MENTION_LIMIT = 20
SUGGESTION_LIMIT = 10
MIN_SUGGESTION_QUERY = 2
DROPDOWN_HEIGHT = 10  # rows

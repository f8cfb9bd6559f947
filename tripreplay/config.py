# Role: Central configuration module. Loads .env into environment variables and computes runtime settings
# (DEBUG, replay playback defaults, external API endpoints). Importers read tripreplay.config.<NAME>
# so flags are not threaded through every call.

from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

DEBUG: bool = False

REPLAY_AUTO_ADVANCE: bool = False
REPLAY_DELAY_MS: int = 2000
REPLAY_SHOW_TYPEWRITER: bool = True
REPLAY_HIGHLIGHT_TOOLS: bool = True

GOOGLE_MAPS_API_KEY: Optional[str] = None
PROVIDERS_API_URL: str = "http://127.0.0.1:8000/providers"
BACKEND_URL: str = "http://127.0.0.1:8000"

_TRUTHY = {"1", "true", "yes"}


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in _TRUTHY


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_env() -> None:
    """
    Load .env into os.environ, then recompute every setting.
    This keeps settings correct even if load_env() is called after import.
    """
    global DEBUG, REPLAY_AUTO_ADVANCE, REPLAY_DELAY_MS, REPLAY_SHOW_TYPEWRITER, REPLAY_HIGHLIGHT_TOOLS
    global GOOGLE_MAPS_API_KEY, PROVIDERS_API_URL, BACKEND_URL
    load_dotenv()

    DEBUG = _flag("DEBUG", False)

    REPLAY_AUTO_ADVANCE = _flag("REPLAY_AUTO_ADVANCE", False)
    # Key line: negative delays make no sense for pacing; clamp to zero.
    REPLAY_DELAY_MS = max(0, _int("REPLAY_DELAY_MS", 2000))
    REPLAY_SHOW_TYPEWRITER = _flag("REPLAY_SHOW_TYPEWRITER", True)
    REPLAY_HIGHLIGHT_TOOLS = _flag("REPLAY_HIGHLIGHT_TOOLS", True)

    GOOGLE_MAPS_API_KEY = os.getenv("GOOGLE_MAPS_API_KEY") or None
    PROVIDERS_API_URL = os.getenv("PROVIDERS_API_URL", "http://127.0.0.1:8000/providers").rstrip("/")
    BACKEND_URL = os.getenv("BACKEND_URL", "http://127.0.0.1:8000").rstrip("/")

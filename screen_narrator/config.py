"""Environment-backed settings (API keys, session base directory)."""

import os
from pathlib import Path

from dotenv import load_dotenv

from screen_narrator.constants import SESSION_BASE, ELEVENLABS_VOICE_ID
from screen_narrator.errors import ConfigError

PROJECT_DIR = Path(__file__).resolve().parents[1]


def load_env() -> str | None:
    """Load the first .env found in the project root or the home directory.

    Existing environment variables win over file values. Returns the path
    that was loaded, or None.
    """
    for candidate in (PROJECT_DIR / ".env", Path.home() / ".env"):
        if candidate.is_file():
            load_dotenv(candidate, override=False)
            return str(candidate)
    return None


def require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ConfigError(f"{name} not set", stage="config")
    return value


def session_base() -> str:
    return os.getenv("NARRATOR_SESSION_BASE") or SESSION_BASE


def elevenlabs_voice_id() -> str:
    return os.getenv("ELEVENLABS_VOICE_ID") or ELEVENLABS_VOICE_ID


def tts_provider() -> str:
    """Pick the speech provider: ElevenLabs when a key is configured, else edge-tts.

    NARRATOR_TTS overrides the choice.
    """
    choice = os.getenv("NARRATOR_TTS", "").strip().lower()
    if choice:
        if choice not in ("elevenlabs", "edge"):
            raise ConfigError(f"NARRATOR_TTS must be 'elevenlabs' or 'edge', got '{choice}'", stage="config")
        return choice
    return "elevenlabs" if os.getenv("ELEVENLABS_API_KEY") else "edge"

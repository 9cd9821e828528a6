"""
Runtime configuration.

Reads provider credentials, model names, cache limits and data locations from the
environment (a local .env file is loaded first).
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_PARTS_PATH = BASE_DIR / "data" / "parts.json"

GEMINI_MODEL = "gemini-2.0-flash"
ANTHROPIC_MODEL = "claude-3-5-sonnet-20241022"
OPENAI_MODEL = "gpt-4o-mini"

# Values shipped in .env.example; treated the same as an unset key.
_PLACEHOLDER_KEYS = {
    "your_gemini_api_key_here",
    "your_anthropic_api_key_here",
    "your_openai_api_key_here",
}


def get_api_key(name: str) -> str:
    """
    Return the API key stored in env var `name`, or "" if unset or a placeholder.
    """
    value = os.environ.get(name, "").strip()
    if value in _PLACEHOLDER_KEYS:
        return ""
    return value


@dataclass(frozen=True)
class Settings:
    """Configuration container for providers, cache limits, and data paths."""
    google_api_key: str
    anthropic_api_key: str
    openai_api_key: str
    gemini_model: str
    anthropic_model: str
    openai_model: str
    llm_timeout_seconds: float
    cache_ttl_seconds: float
    cache_max_entries: int
    parts_data_path: Path


def load_settings() -> Settings:
    """
    Build Settings from environment variables and defaults.

    Raises:
        ValueError: if a numeric variable cannot be parsed.
    """
    parts_path = os.getenv("PARTS_DATA_PATH")
    return Settings(
        google_api_key=get_api_key("GOOGLE_API_KEY"),
        anthropic_api_key=get_api_key("ANTHROPIC_API_KEY"),
        openai_api_key=get_api_key("OPENAI_API_KEY"),
        gemini_model=os.getenv("GEMINI_MODEL", GEMINI_MODEL),
        anthropic_model=os.getenv("ANTHROPIC_MODEL", ANTHROPIC_MODEL),
        openai_model=os.getenv("OPENAI_MODEL", OPENAI_MODEL),
        llm_timeout_seconds=float(os.getenv("LLM_TIMEOUT_SECONDS", "20")),
        cache_ttl_seconds=float(os.getenv("RESPONSE_CACHE_TTL_SECONDS", "300")),
        cache_max_entries=int(os.getenv("RESPONSE_CACHE_MAX_ENTRIES", "100")),
        parts_data_path=Path(parts_path) if parts_path else DEFAULT_PARTS_PATH,
    )

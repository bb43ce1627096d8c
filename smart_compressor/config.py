"""
config.py - Settings loaded from environment variables.

Only the optional summary feature and logging are configured here;
compression itself takes its inputs as arguments.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Gemini's OpenAI-compatible endpoint
DEFAULT_SUMMARY_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"
DEFAULT_SUMMARY_MODEL = "gemini-2.5-flash"


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


@dataclass(frozen=True)
class Settings:
    """Application settings."""

    # Summary service; no key means the feature is off
    summary_api_key: Optional[str] = None
    summary_base_url: str = DEFAULT_SUMMARY_BASE_URL
    summary_model: str = DEFAULT_SUMMARY_MODEL
    summary_language: str = "Italian"
    summary_max_pages: int = 5
    summary_timeout: float = 60.0

    # Logging settings
    log_level: str = "INFO"

    @property
    def summary_enabled(self) -> bool:
        return bool(self.summary_api_key)

    @classmethod
    def from_env(cls, dotenv: bool = True) -> "Settings":
        """Build settings from the environment (and a .env file if present)."""
        if dotenv:
            load_dotenv()

        return cls(
            summary_api_key=_first_env("SUMMARY_API_KEY", "GEMINI_API_KEY", "API_KEY"),
            summary_base_url=os.getenv("SUMMARY_API_BASE_URL", DEFAULT_SUMMARY_BASE_URL),
            summary_model=os.getenv("SUMMARY_MODEL", DEFAULT_SUMMARY_MODEL),
            summary_language=os.getenv("SUMMARY_LANGUAGE", "Italian"),
            summary_max_pages=int(os.getenv("SUMMARY_MAX_PAGES", "5")),
            summary_timeout=float(os.getenv("SUMMARY_TIMEOUT", "60")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

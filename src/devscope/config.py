"""Runtime settings.

Settings are resolved once at the edge of the program (the CLI) and passed
explicitly to the fetcher and AI client; nothing below this module reads
the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from .errors import InvalidInput

GITHUB_API_URL = "https://api.github.com"
CONTRIBUTIONS_API_URL = "https://github-contributions-api.jogruber.de/v4"
AI_API_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT = 60.0


@dataclass(frozen=True)
class Settings:
    github_token: str | None = None
    gemini_api_key: str = ""
    model: str = DEFAULT_MODEL
    github_api_url: str = GITHUB_API_URL
    contributions_api_url: str = CONTRIBUTIONS_API_URL
    ai_api_url: str = AI_API_URL
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "Settings":
        """Build settings from the process environment (and ``.env`` if present)."""
        if load_env_file:
            load_dotenv(find_dotenv(usecwd=True))

        raw_timeout = os.getenv("DEVSCOPE_TIMEOUT")
        timeout = DEFAULT_TIMEOUT
        if raw_timeout:
            try:
                timeout = float(raw_timeout)
            except ValueError:
                raise InvalidInput(
                    f"DEVSCOPE_TIMEOUT must be a number of seconds, got {raw_timeout!r}."
                )

        return cls(
            github_token=os.getenv("GITHUB_TOKEN") or None,
            gemini_api_key=os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or "",
            model=os.getenv("DEVSCOPE_MODEL") or DEFAULT_MODEL,
            timeout=timeout,
        )

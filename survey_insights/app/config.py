from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _env_str(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(key)
    if v is None:
        return default
    v = v.strip()
    return v if v else default


def _env_int(key: str, default: int) -> int:
    v = _env_str(key)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_float(key: str, default: float) -> float:
    v = _env_str(key)
    if v is None:
        return default
    try:
        return float(v)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    v = _env_str(key)
    if v is None:
        return default
    return v.lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class Settings:
    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Sentiment dead-zone: polarity must leave (negative, positive) to count.
    positive_threshold: float = 0.1
    negative_threshold: float = -0.1

    # Themes
    fallback_theme: str = "general"
    max_themes_per_answer: int = 5
    top_themes: int = 3

    @staticmethod
    def from_env() -> "Settings":
        # Read configuration from environment variables.
        # Bad values fall back to defaults instead of failing at startup.
        return Settings(
            log_level=_env_str("SURVEY_LOG_LEVEL", "INFO") or "INFO",
            log_json=_env_bool("SURVEY_LOG_JSON", True),

            positive_threshold=_env_float("SURVEY_POSITIVE_THRESHOLD", 0.1),
            negative_threshold=_env_float("SURVEY_NEGATIVE_THRESHOLD", -0.1),

            fallback_theme=_env_str("SURVEY_FALLBACK_THEME", "general") or "general",
            max_themes_per_answer=max(1, _env_int("SURVEY_MAX_THEMES_PER_ANSWER", 5)),
            top_themes=max(0, _env_int("SURVEY_TOP_THEMES", 3)),
        )


def load_settings(dotenv_path: Optional[str] = None) -> Settings:
    # Values already present in the environment win over the .env file.
    load_dotenv(dotenv_path)
    return Settings.from_env()

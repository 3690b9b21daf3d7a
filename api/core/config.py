# core/config.py
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

# Load .env
load_dotenv()

logger = logging.getLogger(__name__)


def _env_str(name: str, default: Optional[str] = None) -> Optional[str]:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}={raw!r}, using {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid number for {name}={raw!r}, using {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    # ---- Content providers ----
    api_bible_key: Optional[str] = None
    default_language: str = "en"
    provider_timeout_seconds: float = 10.0
    getbible_timeout_seconds: float = 15.0
    grounding_timeout_seconds: float = 3.0

    # ---- Chapter cache ----
    chapter_cache_enabled: bool = True
    chapter_cache_ttl_seconds: int = 3600

    # ---- Chat backends ----
    groq_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    groq_model: str = "llama-3.3-70b-versatile"
    openai_model: str = "gpt-4o-mini"
    anthropic_model: str = "claude-3-haiku-20240307"
    chat_retry_max_attempts: int = 3
    chat_retry_base_delay: float = 1.0
    chat_temperature: float = 0.75
    chat_max_tokens: int = 4000

    # ---- Server ----
    log_level: str = "INFO"
    cors_origins: str = "*"

    @property
    def api_bible_configured(self) -> bool:
        return bool(self.api_bible_key)

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            api_bible_key=_env_str("API_BIBLE_KEY"),
            default_language=_env_str("DEFAULT_LANGUAGE", "en"),
            provider_timeout_seconds=_env_float("PROVIDER_TIMEOUT_SECONDS", 10.0),
            getbible_timeout_seconds=_env_float("GETBIBLE_TIMEOUT_SECONDS", 15.0),
            grounding_timeout_seconds=_env_float("GROUNDING_TIMEOUT_SECONDS", 3.0),
            chapter_cache_enabled=_env_bool("CHAPTER_CACHE_ENABLED", True),
            chapter_cache_ttl_seconds=_env_int("CHAPTER_CACHE_TTL_SECONDS", 3600),
            groq_api_key=_env_str("GROQ_API_KEY"),
            openai_api_key=_env_str("OPENAI_API_KEY"),
            anthropic_api_key=_env_str("ANTHROPIC_API_KEY"),
            groq_model=_env_str("GROQ_MODEL", "llama-3.3-70b-versatile"),
            openai_model=_env_str("OPENAI_MODEL", "gpt-4o-mini"),
            anthropic_model=_env_str("ANTHROPIC_MODEL", "claude-3-haiku-20240307"),
            chat_retry_max_attempts=_env_int("CHAT_RETRY_MAX_ATTEMPTS", 3),
            chat_retry_base_delay=_env_float("CHAT_RETRY_BASE_DELAY", 1.0),
            chat_temperature=_env_float("CHAT_TEMPERATURE", 0.75),
            chat_max_tokens=_env_int("CHAT_MAX_TOKENS", 4000),
            log_level=(_env_str("LOG_LEVEL", "INFO") or "INFO").upper(),
            cors_origins=_env_str("CORS_ORIGINS", "*"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def reset_settings() -> None:
    """Drop the cached Settings so the next call re-reads the environment."""
    get_settings.cache_clear()

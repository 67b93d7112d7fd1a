"""
Runtime configuration for the key dashboard.

Everything is read from environment variables (a local .env file is loaded
first). Values are resolved once and shared through get_settings().
"""

import os
import secrets
from typing import Any, Dict, List, Optional

import dotenv
from loguru import logger

dotenv.load_dotenv()

DEFAULT_KEY_PREFIX = "nani"
DEFAULT_USAGE_LIMIT = 1000
DEFAULT_WARNING_RATIO = 0.8
DEFAULT_DATABASE_URL = "sqlite:///./api_keys.db"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_GITHUB_API_URL = "https://api.github.com"


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Configuration for the API, key store, access gate and research assistant"""

    def __init__(self):
        # Keys
        self.key_prefix = os.getenv("KEY_PREFIX", DEFAULT_KEY_PREFIX)
        self.default_usage_limit = int(os.getenv("DEFAULT_USAGE_LIMIT", DEFAULT_USAGE_LIMIT))
        self.usage_warning_ratio = float(os.getenv("USAGE_WARNING_RATIO", DEFAULT_WARNING_RATIO))

        # Database
        self.database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
        self.db_echo = _as_bool(os.getenv("DB_ECHO", "false"))

        # Access gate
        self.grant_token_secret = os.getenv("GRANT_TOKEN_SECRET")
        if not self.grant_token_secret:
            logger.warning("GRANT_TOKEN_SECRET not set - using a per-process secret, grants will not survive restarts")
            self.grant_token_secret = secrets.token_urlsafe(32)
        elif len(self.grant_token_secret) < 32:
            logger.warning("GRANT_TOKEN_SECRET is less than 32 bytes - use a stronger secret!")
        self.grant_token_ttl = int(os.getenv("GRANT_TOKEN_TTL", "3600"))

        # Research assistant
        self.openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY") or None
        self.openai_model = os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL)
        self.openai_temperature = float(os.getenv("OPENAI_TEMPERATURE", "0.7"))
        self.openai_base_url: Optional[str] = os.getenv("OPENAI_BASE_URL") or None
        self.github_api_url = os.getenv("GITHUB_API_URL", DEFAULT_GITHUB_API_URL).rstrip("/")
        self.github_token: Optional[str] = os.getenv("GITHUB_TOKEN") or None
        self.github_timeout = float(os.getenv("GITHUB_TIMEOUT", "15"))
        self.readme_char_limit = int(os.getenv("README_CHAR_LIMIT", "3000"))

        # Server
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = int(os.getenv("PORT", "8000"))
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        self.frontend_origins: List[str] = [
            origin.strip()
            for origin in os.getenv(
                "FRONTEND_ORIGINS", "http://localhost:3000,http://localhost:5173"
            ).split(",")
            if origin.strip()
        ]

    def as_dict(self) -> Dict[str, Any]:
        """Non-secret view of the settings (for logging and diagnostics)."""
        return {
            "key_prefix": self.key_prefix,
            "default_usage_limit": self.default_usage_limit,
            "usage_warning_ratio": self.usage_warning_ratio,
            "database_url": self.database_url.split("@")[-1],
            "grant_token_ttl": self.grant_token_ttl,
            "openai_model": self.openai_model,
            "has_openai_key": self.openai_api_key is not None,
            "github_api_url": self.github_api_url,
            "has_github_token": self.github_token is not None,
            "log_level": self.log_level,
        }


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings

    if _settings is None:
        _settings = Settings()
    return _settings

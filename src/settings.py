"""Centralized settings for the credential engine.

Uses pydantic-settings to load from environment variables (prefixed
KEYFORGE_) or a local .env file.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Credential engine settings loaded from environment variables."""

    # --- Encryption ---
    # 64 hex characters (32 bytes); generate with `openssl rand -hex 32`
    encryption_key: str = ""

    # --- Database ---
    database_url: str = "sqlite:///./keyforge.db"

    # --- Provider validation ---
    validation_timeout_seconds: float = 10.0
    max_concurrent_validations: int = 4
    max_concurrent_resolutions: int = 4
    user_agent: str = "Keyforge/1.0"

    model_config = {
        "env_prefix": "KEYFORGE_",
        "env_file": ".env",
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()

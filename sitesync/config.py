"""Application configuration management."""

from functools import lru_cache
from typing import Any

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SITESYNC_",
        case_sensitive=False,
    )

    # Application
    app_name: str = "sitesync"
    debug: bool = False
    secret_key: str = "change-me-in-production"

    # Fernet key for cached credentials (generate with Fernet.generate_key())
    # If not set, derives from secret_key
    token_encryption_key: str | None = None

    # Local store
    database_url: str = "sqlite:///sitesync.db"

    # Force every field read to go back to the provider
    refresh: bool = False

    # Seconds, handed to the HTTP client as-is
    http_timeout: float = 30.0

    # Provider API endpoints
    acquia_endpoint: str = "https://cloudapi.acquia.com/v1"
    pantheon_endpoint: str = "https://terminus.getpantheon.com"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


class SettingsOptionSource:
    """Expose settings through the ``get(name)`` option contract.

    Overrides take precedence, so a single invocation can force a refresh
    without touching the environment.
    """

    def __init__(self, settings: Settings | None = None, **overrides: Any):
        self._settings = settings or get_settings()
        self._overrides = overrides

    def get(self, name: str) -> Any:
        if name in self._overrides:
            return self._overrides[name]
        return getattr(self._settings, name, None)

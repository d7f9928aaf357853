"""
Configuration and settings for the site service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    site_name: str = Field(default="AKACorpTech")
    site_url: str = Field(default="http://localhost:8000")

    # Hosted backend (REST store + auth)
    backend_url: Optional[str] = Field(default=None)
    backend_api_key: Optional[str] = Field(default=None)

    # Directly reachable relational store (any SQLAlchemy URL)
    database_url: Optional[str] = Field(default=None)

    # Change feed (Redis pub/sub)
    redis_url: Optional[str] = Field(default=None)
    redis_channel_prefix: str = Field(default="corpsite:changes")

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False,
        validation_alias=AliasChoices(
            "CORPSITE_USE_IN_MEMORY_BACKENDS", "use_in_memory_backends"
        ),
    )
    auth_auto_confirm: bool = Field(default=False)

    # Sessions
    session_cookie_name: str = Field(default="corpsite_session")
    session_ttl_seconds: int = Field(default=3600)

    log_level: str = Field(default="INFO")

    @property
    def dashboard_redirect_url(self) -> str:
        return f"{self.site_url.rstrip('/')}/admin/dashboard"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()

"""Application configuration."""

import os
from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    checkout_url: str | None = None
    checkout_timeout_seconds: float = 10
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


@dataclass(frozen=True)
class Configured:
    """Remote backend credentials are present."""

    url: str
    key: str


@dataclass(frozen=True)
class Unconfigured:
    """No remote backend; the app runs in demo mode."""


BackendConfig = Configured | Unconfigured


def resolve_backend_config(settings: Settings) -> BackendConfig:
    """Decide the operating mode once, from the Supabase settings."""
    url = (settings.supabase_url or "").strip()
    key = (settings.supabase_anon_key or "").strip()
    if url and key:
        return Configured(url=url, key=key)
    return Unconfigured()

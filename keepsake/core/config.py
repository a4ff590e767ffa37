"""
Configuration management using Pydantic Settings.
All settings loaded from environment variables or .env file.
"""

import json
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

TRUSTED_ROLES = ("executor", "legacy_messenger", "guardian")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_env: Literal["development", "staging", "production", "test"] = Field(
        default="development", alias="APP_ENV"
    )
    app_url: str = Field(default="http://localhost:8000", alias="APP_URL")
    app_name: str = Field(default="Keepsake", alias="APP_NAME")
    secret_key: str = Field(..., alias="SECRET_KEY")

    # Database
    database_url: str = Field(..., alias="DATABASE_URL")

    # Redis (Celery Broker)
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")

    # Supabase (auth + storage collaborators)
    supabase_url: str = Field(..., alias="SUPABASE_URL")
    supabase_key: str = Field(..., alias="SUPABASE_KEY")
    storage_bucket: str = Field(default="videos", alias="STORAGE_BUCKET")
    signed_url_ttl_seconds: int = Field(default=3600, alias="SIGNED_URL_TTL_SECONDS")

    # Email delivery (Resend)
    resend_api_key: str | None = Field(default=None, alias="RESEND_API_KEY")
    email_api_url: str = Field(default="https://api.resend.com/emails", alias="EMAIL_API_URL")
    email_from: str = Field(
        default="Keepsake <notifications@keepsake.app>", alias="EMAIL_FROM"
    )

    # Legacy release policy
    # Roles allowed to start a deceased confirmation. Every trusted role may view released media.
    deceased_initiator_roles: Annotated[list[str], NoDecode] = Field(
        default=list(TRUSTED_ROLES), alias="DECEASED_INITIATOR_ROLES"
    )
    notify_regular_contacts_on_release: bool = Field(
        default=True, alias="NOTIFY_REGULAR_CONTACTS_ON_RELEASE"
    )

    # Identity reconciliation sweep
    reconcile_batch_size: int = Field(default=500, alias="RECONCILE_BATCH_SIZE")
    reconcile_interval_seconds: int = Field(default=900, alias="RECONCILE_INTERVAL_SECONDS")

    # Optional: Monitoring
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("deceased_initiator_roles", mode="before")
    @classmethod
    def parse_initiator_roles(cls, v: object) -> object:
        """Accept a comma separated string as well as a JSON list."""
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [role.strip().lower() for role in v.split(",") if role.strip()]
        return v

    @field_validator("deceased_initiator_roles")
    @classmethod
    def validate_initiator_roles(cls, v: list[str]) -> list[str]:
        """Ensure every configured role is a known trusted role."""
        unknown = set(v) - set(TRUSTED_ROLES)
        if unknown:
            raise ValueError(f"Unknown trusted roles: {', '.join(sorted(unknown))}")
        if not v:
            raise ValueError("DECEASED_INITIATOR_ROLES must name at least one role")
        return v

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.app_env == "development"

    @property
    def email_enabled(self) -> bool:
        """Email delivery is skipped when no API key is configured."""
        return bool(self.resend_api_key)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure settings are loaded only once.
    """
    return Settings()


# Export singleton instance
settings = get_settings()

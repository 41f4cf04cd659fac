"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from barangay_identity.kernel.errors import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["development", "test", "production"] = Field(default="development")

    # API Settings
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)

    # Hosted backend (GoTrue + PostgREST)
    supabase_url: str | None = Field(default=None)
    supabase_anon_key: str | None = Field(default=None)
    supabase_service_role_key: str | None = Field(default=None)
    store_timeout_seconds: float = Field(default=10.0)

    # Identity resolver: how a failed store probe is counted
    identity_probe_failure_mode: Literal["open", "closed"] = Field(default="open")

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO")
    log_format: Literal["json", "text"] = Field(default="json")

    def missing_backend_settings(self) -> list[str]:
        """Names of required backend variables that are unset or blank."""
        required = {
            "SUPABASE_URL": self.supabase_url,
            "SUPABASE_ANON_KEY": self.supabase_anon_key,
            "SUPABASE_SERVICE_ROLE_KEY": self.supabase_service_role_key,
        }
        return [name for name, value in required.items() if not (value or "").strip()]

    def require_backend(self) -> None:
        """Raise ConfigurationError unless every backend variable is set."""
        missing = self.missing_backend_settings()
        if missing:
            raise ConfigurationError(
                message="Missing backend configuration",
                details=", ".join(missing),
            )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Provider configuration."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Provider settings, read from N8N_* environment variables or a .env file."""

    model_config = SettingsConfigDict(
        env_prefix="N8N_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="n8nform", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: str = Field(default="development", description="Environment")
    log_level: str = Field(default="INFO", description="Log level")

    # n8n connection
    host: Optional[str] = Field(
        default=None, description="n8n instance URL, e.g. https://n8n.example.com"
    )
    api_key: Optional[SecretStr] = Field(
        default=None, description="API key sent in the X-N8N-API-KEY header"
    )
    insecure: bool = Field(
        default=False, description="Skip TLS certificate verification"
    )
    request_timeout: float = Field(
        default=30.0, description="Per-request timeout in seconds"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() in ("development", "dev")

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment.lower() in ("production", "prod")

    @property
    def api_key_value(self) -> Optional[str]:
        """Plain API key, or None when unset."""
        return self.api_key.get_secret_value() if self.api_key else None


@lru_cache()
def get_settings() -> Settings:
    """Get settings (cached)."""
    return Settings()

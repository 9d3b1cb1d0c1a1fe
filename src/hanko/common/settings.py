"""Configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """SDK settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HANKO_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API connection
    base_url: str = Field(
        default="https://api.hanko.io",
        description="Base URL of the Hanko Authentication API",
    )
    api_version: str = Field(
        default="v1",
        description="API version segment appended to the base URL",
    )
    http_timeout: float = Field(
        default=10.0,
        description="HTTP request timeout in seconds",
    )

    # Credentials
    api_secret: str | None = Field(
        default=None,
        description="API secret (used as HMAC key, or sent directly without an api key id)",
    )
    api_key_id: str | None = Field(
        default=None,
        description="API key id; enables HMAC request signing when set",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Log level for SDK loggers",
    )
    log_json: bool = Field(
        default=True,
        description="Emit JSON log lines instead of console output",
    )

    @property
    def hmac_enabled(self) -> bool:
        """Whether requests are signed with HMAC rather than the plain secret."""
        return bool(self.api_key_id)


@lru_cache
def get_settings() -> Settings:
    """Get cached SDK settings."""
    return Settings()

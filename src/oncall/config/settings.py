"""
Environment settings using Pydantic.

Values come from ``ONCALL_``-prefixed environment variables (or a ``.env``
file) and override the matching entries of the YAML config file.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Process-level settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ONCALL_",
        extra="ignore",
    )

    # Config file location, replaces ~/.config/oncall/config.yml
    config: Path | None = None

    # OpsGenie API endpoint, e.g. https://api.eu.opsgenie.com
    api_url: str | None = None

    # Deadline for each remote call, in seconds
    http_timeout: float = 30.0

    log_level: str = "WARNING"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

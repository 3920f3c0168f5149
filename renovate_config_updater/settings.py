"""Application settings loaded from environment variables and .env file."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings for the Renovate config updater.

    Command-line flags take precedence; these are the fallbacks.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github_token: str | None = None
    github_org: str = "MyOrg"
    gpg_key_id: str | None = None
    log_dir: Path = Path("logs")
    git_host: str = "github.com"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

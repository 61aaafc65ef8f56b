"""Configuration settings for stacksync.

Settings come from ``STACKSYNC_*`` environment variables or a ``.env`` file.
Per-project choices (catalog location, explicit stacks) live in the project
file instead; see ``stacksync.project.state``.
"""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="STACKSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Name of the project file at the project root
    project_file: str = "stacksync.yml"

    # Directory (relative to the project) that holds one subdirectory per stack
    instructions_dir: str = "stack-instructions"

    # Default catalog location for `stacksync init`
    catalog: str | None = None

    cache_ttl_seconds: float = Field(default=300.0, ge=0)
    verify_concurrency: int = Field(default=4, ge=1)

    # When set, sync runs write JSONL event logs here
    log_dir: Path | None = None


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings cache (useful for testing)."""
    global _settings
    _settings = None

"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file).

    Every field can be set as ``ASSET_PIPELINE_<FIELD>``; list fields take a
    JSON array.  Command-line flags override these values.
    """

    model_config = SettingsConfigDict(
        env_prefix="ASSET_PIPELINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "INFO"
    default_env: str = "staging"
    src_dir: str = "src"
    dist_dir: str = "dist"
    include_patterns: list[str] = Field(default_factory=lambda: ["**/*.{html,css,js}"])
    exclude_patterns: list[str] = Field(
        default_factory=lambda: ["**/node_modules/**", "**/.git/**", "**/dist/**"]
    )
    max_concurrency: int = Field(default=16, ge=1)
    watch_debounce_ms: int = Field(default=100, ge=0)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()

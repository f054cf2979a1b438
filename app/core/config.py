"""
Application configuration models and helpers.

Centralizes settings management so the HTTP handlers, the batch aggregator and
the operator scripts share a single, explicitly injected configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class ConfigurationError(RuntimeError):
    """Raised when a required deployment setting is missing."""


class GitHubSettings(BaseSettings):
    """Repository hosting the automation workflow, read from ``GITHUB_*``."""

    model_config = SettingsConfigDict(env_prefix="GITHUB_", extra="ignore")

    token: Optional[str] = Field(
        None,
        description="Bearer token used for dispatch and run/log queries.",
    )
    owner: str = Field("crendy22")
    repo: str = Field("llpa-rate-comparator")
    api_url: str = Field("https://api.github.com")
    timeout_seconds: float = Field(15.0)

    @field_validator("token", mode="before")
    @classmethod
    def _blank_token_is_missing(cls, value: Optional[str]) -> Optional[str]:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @property
    def actions_url(self) -> str:
        """Browser URL of the repository's Actions tab."""
        return f"https://github.com/{self.owner}/{self.repo}/actions"

    def require_token(self) -> str:
        if not self.token:
            raise ConfigurationError(
                "GitHub token not configured - set GITHUB_TOKEN in the deployment environment"
            )
        return self.token


class BatchSettings(BaseSettings):
    """Tuning knobs for run lookup and batch analysis, read from ``BATCH_*``."""

    model_config = SettingsConfigDict(env_prefix="BATCH_", extra="ignore")

    cutoff_buffer_seconds: int = Field(30)
    runs_per_page: int = Field(100)
    max_pages: int = Field(5)
    analysis_concurrency: int = Field(
        5, description="Number of runs analyzed concurrently per group."
    )
    trigger_lookup_delay_seconds: float = Field(
        3.0, description="Pause before the single post-dispatch run lookup."
    )
    trigger_lookup_per_page: int = Field(5)
    trust_conclusion_success: bool = Field(
        False,
        description=(
            "Treat a successful run without a lock confirmation in its logs as locked."
        ),
    )

    @field_validator("runs_per_page")
    @classmethod
    def _clamp_page_size(cls, value: int) -> int:
        # GitHub caps per_page at 100.
        return max(1, min(value, 100))

    @field_validator("max_pages", "analysis_concurrency", "trigger_lookup_per_page")
    @classmethod
    def _at_least_one(cls, value: int) -> int:
        return max(1, value)


class AppSettings(BaseSettings):
    """Root settings object for the HTTP handlers."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    env: str = Field("development")
    log_level: str = Field("INFO")
    github: GitHubSettings = Field(default_factory=GitHubSettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "BatchSettings",
    "ConfigurationError",
    "GitHubSettings",
    "get_settings",
]

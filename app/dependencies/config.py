"""
FastAPI dependencies exposing the injected configuration sections.
"""

from fastapi import Depends

from app.core.config import AppSettings, BatchSettings, GitHubSettings, get_settings


def get_app_settings() -> AppSettings:
    """Settings resolved once per process; tests override this dependency."""
    return get_settings()


def get_github_settings(settings: AppSettings = Depends(get_app_settings)) -> GitHubSettings:
    return settings.github


def get_batch_settings(settings: AppSettings = Depends(get_app_settings)) -> BatchSettings:
    return settings.batch


SettingsDependency = Depends(get_app_settings)

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_batch_settings",
    "get_github_settings",
]

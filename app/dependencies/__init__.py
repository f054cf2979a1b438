"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_batch_aggregator,
    get_github_client,
    get_loan_dispatcher,
    get_run_locator,
)
from .config import (
    SettingsDependency,
    get_app_settings,
    get_batch_settings,
    get_github_settings,
)

__all__ = [
    "SettingsDependency",
    "get_app_settings",
    "get_batch_aggregator",
    "get_batch_settings",
    "get_github_client",
    "get_github_settings",
    "get_loan_dispatcher",
    "get_run_locator",
]

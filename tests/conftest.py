"""Pytest configuration shared across the suite."""

from __future__ import annotations

import pytest

try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - direct execution
    import _bootstrap  # type: ignore # noqa: F401

from app.core.config import BatchSettings, GitHubSettings


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def github_settings() -> GitHubSettings:
    return GitHubSettings(
        token="test-token",
        owner="crendy22",
        repo="llpa-rate-comparator",
        api_url="https://api.github.test",
        timeout_seconds=5,
    )


@pytest.fixture
def batch_settings() -> BatchSettings:
    return BatchSettings(
        cutoff_buffer_seconds=30,
        runs_per_page=100,
        max_pages=3,
        analysis_concurrency=2,
        trigger_lookup_delay_seconds=0,
    )

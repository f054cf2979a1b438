"""
Factory functions to provide the GitHub client and services as FastAPI dependencies.
"""

from fastapi import Depends

from app.clients import GitHubActionsClient
from app.core.config import BatchSettings, GitHubSettings
from app.services import (
    BatchResultAggregator,
    LoanDispatcher,
    LogFetcher,
    LogInterpreter,
    RunLocator,
)

from .config import get_batch_settings, get_github_settings


def get_github_client(
    settings: GitHubSettings = Depends(get_github_settings),
) -> GitHubActionsClient:
    """Provide a GitHub Actions client; a missing token surfaces on its first request."""
    return GitHubActionsClient(settings)


def get_run_locator(
    client: GitHubActionsClient = Depends(get_github_client),
    settings: BatchSettings = Depends(get_batch_settings),
) -> RunLocator:
    return RunLocator(client, settings)


def get_loan_dispatcher(
    client: GitHubActionsClient = Depends(get_github_client),
    locator: RunLocator = Depends(get_run_locator),
    github_settings: GitHubSettings = Depends(get_github_settings),
    batch_settings: BatchSettings = Depends(get_batch_settings),
) -> LoanDispatcher:
    """Build the dispatcher used by the trigger endpoints."""
    return LoanDispatcher(client, locator, github_settings, batch_settings)


def get_batch_aggregator(
    client: GitHubActionsClient = Depends(get_github_client),
    locator: RunLocator = Depends(get_run_locator),
    settings: BatchSettings = Depends(get_batch_settings),
) -> BatchResultAggregator:
    """Build the aggregator used by the result endpoints."""
    return BatchResultAggregator(
        locator=locator,
        fetcher=LogFetcher(client),
        interpreter=LogInterpreter(trust_conclusion_success=settings.trust_conclusion_success),
        settings=settings,
    )


__all__ = [
    "get_batch_aggregator",
    "get_github_client",
    "get_loan_dispatcher",
    "get_run_locator",
]

"""Expose constructed client wrappers."""

from .github_actions import DispatchError, GitHubActionsClient, LogUnavailableError

__all__ = [
    "DispatchError",
    "GitHubActionsClient",
    "LogUnavailableError",
]

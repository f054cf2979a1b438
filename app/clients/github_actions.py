"""
GitHub Actions REST client.

Covers the handful of endpoints the loan automation relies on: repository
dispatch, workflow run listing, job listing and log downloads.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from app.core.config import GitHubSettings
from app.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)


class DispatchError(RuntimeError):
    """Raised when GitHub rejects a repository dispatch event."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"GitHub dispatch failed: {status_code} - {body}")
        self.status_code = status_code
        self.body = body


class LogUnavailableError(RuntimeError):
    """Raised when a run or job log cannot be downloaded."""

    def __init__(self, resource: str, status_code: Optional[int] = None) -> None:
        detail = f" (HTTP {status_code})" if status_code is not None else ""
        super().__init__(f"Could not download logs for {resource}{detail}")
        self.resource = resource
        self.status_code = status_code


class GitHubActionsClient:
    """Thin async wrapper over the GitHub Actions API for one repository."""

    def __init__(
        self,
        settings: GitHubSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_config: RetryConfig | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._retry = retry_config or RetryConfig()

    @property
    def repo_url(self) -> str:
        return f"{self._settings.api_url}/repos/{self._settings.owner}/{self._settings.repo}"

    def _client(self, **kwargs: Any) -> httpx.AsyncClient:
        # Raises ConfigurationError on first use rather than at construction.
        token = self._settings.require_token()
        return httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
            **kwargs,
        )

    async def create_dispatch_event(
        self, event_type: str, client_payload: Dict[str, Any]
    ) -> None:
        """Send a ``repository_dispatch`` event. GitHub answers 204 with no body."""
        async with self._client() as client:
            response = await client.post(
                f"{self.repo_url}/dispatches",
                json={"event_type": event_type, "client_payload": client_payload},
            )

        if not response.is_success:
            logger.error(
                "GitHub dispatch failed: %s - %s", response.status_code, response.text
            )
            raise DispatchError(response.status_code, response.text)

    async def list_runs(self, *, page: int = 1, per_page: int = 100) -> List[Dict[str, Any]]:
        """Return one page of workflow runs, newest first."""
        async with self._client() as client:
            response = await request_with_retry(
                client.get,
                f"{self.repo_url}/actions/runs",
                params={"per_page": per_page, "page": page},
                retry_config=self._retry,
            )
        return response.json().get("workflow_runs", [])

    async def list_jobs(self, run_id: int) -> List[Dict[str, Any]]:
        async with self._client() as client:
            response = await request_with_retry(
                client.get,
                f"{self.repo_url}/actions/runs/{run_id}/jobs",
                params={"per_page": 100},
                retry_config=self._retry,
            )
        return response.json().get("jobs", [])

    async def download_run_logs(self, run_id: int) -> bytes:
        """Download the zipped log archive for a whole run."""
        return await self._download(
            f"{self.repo_url}/actions/runs/{run_id}/logs", resource=f"run {run_id}"
        )

    async def download_job_logs(self, job_id: int) -> bytes:
        """Download the plain-text log of a single job."""
        return await self._download(
            f"{self.repo_url}/actions/jobs/{job_id}/logs", resource=f"job {job_id}"
        )

    async def _download(self, url: str, *, resource: str) -> bytes:
        # Log endpoints answer 302 to a short-lived signed URL; the bearer
        # token must not be forwarded to that host.
        async with self._client(follow_redirects=False) as client:
            response = await client.get(url)

        if response.status_code == httpx.codes.OK:
            return response.content
        if response.status_code != httpx.codes.FOUND:
            raise LogUnavailableError(resource, response.status_code)

        location = response.headers.get("location")
        if not location:
            raise LogUnavailableError(resource, response.status_code)

        async with httpx.AsyncClient(
            timeout=self._settings.timeout_seconds,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            download = await client.get(location)

        if not download.is_success:
            raise LogUnavailableError(resource, download.status_code)
        return download.content


__all__ = ["DispatchError", "GitHubActionsClient", "LogUnavailableError"]

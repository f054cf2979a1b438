"""
Find the workflow runs that belong to a dispatched loan or batch.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from app.clients.github_actions import GitHubActionsClient
from app.core.config import BatchSettings
from app.schemas import RunSummary

logger = logging.getLogger(__name__)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp (``Z`` suffix allowed) as an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RunLocator:
    """List recent runs and keep those created inside a batch window.

    GitHub lists runs newest first and registers dispatched runs with a
    delay, so an empty result is normal right after a dispatch and callers
    are expected to poll again.
    """

    def __init__(self, client: GitHubActionsClient, settings: BatchSettings) -> None:
        self._client = client
        self._settings = settings

    def cutoff_for(self, start_time: datetime) -> datetime:
        return parse_timestamp(start_time) - timedelta(
            seconds=self._settings.cutoff_buffer_seconds
        )

    async def find_runs(
        self,
        start_time: datetime,
        *,
        per_page: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> List[RunSummary]:
        """Return runs created at or after ``start_time`` minus the buffer, oldest first."""
        per_page = per_page or self._settings.runs_per_page
        max_pages = max_pages or self._settings.max_pages
        cutoff = self.cutoff_for(start_time)

        runs: dict[int, RunSummary] = {}
        for page in range(1, max_pages + 1):
            payloads = await self._client.list_runs(page=page, per_page=per_page)
            page_runs = [RunSummary.from_api(payload) for payload in payloads]
            for run in page_runs:
                if run.created_at >= cutoff:
                    runs[run.run_id] = run

            if len(payloads) < per_page:
                break
            # Pages are newest first; once a page reaches past the cutoff the
            # following pages can only be older.
            if page_runs and min(run.created_at for run in page_runs) < cutoff:
                break

        ordered = sorted(runs.values(), key=lambda run: (run.created_at, run.run_id))
        logger.info(
            "Located %s runs since %s (cutoff %s)",
            len(ordered),
            start_time.isoformat(),
            cutoff.isoformat(),
        )
        return ordered

    async def find_latest_run(self, start_time: datetime) -> Optional[RunSummary]:
        """Best guess at the run a dispatch just created, or ``None`` if not visible yet."""
        runs = await self.find_runs(
            start_time,
            per_page=self._settings.trigger_lookup_per_page,
            max_pages=1,
        )
        if not runs:
            return None
        dispatched = [run for run in runs if run.event == "repository_dispatch"]
        return (dispatched or runs)[-1]


__all__ = ["RunLocator", "parse_timestamp"]

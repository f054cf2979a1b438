"""
Service that fires repository dispatch events for the loan automation.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from app.clients.github_actions import GitHubActionsClient
from app.core.config import BatchSettings, GitHubSettings
from app.schemas import PortalCredentials, RunSummary
from app.services.run_locator import RunLocator

logger = logging.getLogger(__name__)


class DispatchEvent(str, Enum):
    """Event types the automation workflow listens for."""

    PROCESS_LOANS = "process-loans"
    SELECTIVE_LOCK = "selective-lock"
    PRICE_LOANS_ONLY = "price-loans-only"


@dataclass(frozen=True, slots=True)
class DispatchRequest:
    """Everything sent to the automation for one loan."""

    event_type: DispatchEvent
    loan_record: Dict[str, Any]
    loan_index: int
    credentials: PortalCredentials
    selective_lock: bool = False
    pricing_only: bool = False
    user_approved: bool = False
    nex_id: Optional[str] = None

    def client_payload(self, timestamp: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            # The workflow reads loan_data as a JSON string input.
            "loan_data": json.dumps(self.loan_record),
            "loan_index": self.loan_index,
            "credentials": self.credentials.model_dump(),
            "timestamp": timestamp,
        }
        if self.pricing_only:
            payload["pricing_only"] = True
        if self.selective_lock:
            payload.update(
                {
                    "selective_lock": True,
                    "user_approved": self.user_approved,
                    "nex_id": self.nex_id or "",
                    "workflow_type": self.event_type.value,
                }
            )
        return payload


@dataclass(slots=True)
class DispatchReceipt:
    """Acknowledgement of a dispatch plus the run it most likely created."""

    request: DispatchRequest
    dispatched_at: datetime
    run: Optional[RunSummary] = None
    run_url: str = ""

    @property
    def run_id(self) -> Optional[int]:
        return self.run.run_id if self.run else None


def normalize_selective_lock_record(loan_record: Dict[str, Any]) -> tuple[Dict[str, Any], str]:
    """Return the loan record with the field names the lock script expects, and its NexID."""
    nex_id = str(loan_record.get("nex_id") or loan_record.get("nexId") or "")
    enhanced = {
        **loan_record,
        "nex_id": nex_id,
        "nexId": nex_id,
        "First Name": loan_record.get("First Name") or loan_record.get("firstName") or "",
        "Last Name": loan_record.get("Last Name") or loan_record.get("lastName") or "",
        "Loan Amount": loan_record.get("Loan Amount") or loan_record.get("loanAmount") or "",
        "selective_lock_mode": True,
        "pricing_already_done": True,
    }
    return enhanced, nex_id


class LoanDispatcher:
    """Trigger automation runs and return without waiting for them to finish."""

    def __init__(
        self,
        client: GitHubActionsClient,
        locator: RunLocator,
        github_settings: GitHubSettings,
        batch_settings: BatchSettings,
    ) -> None:
        self._client = client
        self._locator = locator
        self._github = github_settings
        self._batch = batch_settings

    async def dispatch(self, request: DispatchRequest) -> DispatchReceipt:
        dispatched_at = datetime.now(timezone.utc)
        logger.info(
            "Dispatching %s for loan %s (user %s)",
            request.event_type.value,
            request.loan_index,
            request.credentials.username,
        )
        await self._client.create_dispatch_event(
            request.event_type.value,
            request.client_payload(dispatched_at.isoformat()),
        )

        receipt = DispatchReceipt(
            request=request,
            dispatched_at=dispatched_at,
            run_url=self._github.actions_url,
        )
        receipt.run = await self._lookup_run(dispatched_at)
        if receipt.run is not None:
            receipt.run_url = receipt.run.html_url or receipt.run_url
        return receipt

    async def _lookup_run(self, dispatched_at: datetime) -> Optional[RunSummary]:
        """Single bounded attempt; the status endpoint handles the real polling."""
        if self._batch.trigger_lookup_delay_seconds > 0:
            await asyncio.sleep(self._batch.trigger_lookup_delay_seconds)
        try:
            run = await self._locator.find_latest_run(dispatched_at)
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Could not look up the dispatched run: %s", exc)
            return None
        if run is None:
            logger.info("Dispatched run not registered yet")
        else:
            logger.info("Dispatched run %s is %s", run.run_id, run.status)
        return run


__all__ = [
    "DispatchEvent",
    "DispatchReceipt",
    "DispatchRequest",
    "LoanDispatcher",
    "normalize_selective_lock_record",
]

"""
Aggregate per-run lock and pricing outcomes for a submission batch.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, List, Sequence, Tuple, TypeVar

from app.core.config import BatchSettings
from app.schemas import (
    UNKNOWN,
    LockBatchSummary,
    LoanResult,
    PricingBatchSummary,
    PricingResult,
    RunSummary,
)
from app.services.log_fetcher import LogFetcher
from app.services.log_interpreter import LogInterpreter
from app.services.run_locator import RunLocator

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT")


@dataclass(slots=True)
class LockBatchReport:
    summary: LockBatchSummary
    results: List[LoanResult]


@dataclass(slots=True)
class PricingBatchReport:
    summary: PricingBatchSummary
    results: List[PricingResult]

    @property
    def all_complete(self) -> bool:
        return self.summary.is_complete


def partition_runs(runs: Sequence[RunSummary]) -> Tuple[List[RunSummary], List[RunSummary]]:
    """Split runs into (finished, still running)."""
    finished = [run for run in runs if run.is_finished]
    pending = [run for run in runs if not run.is_finished]
    return finished, pending


class BatchResultAggregator:
    """Locate a batch's runs, interpret the finished ones and summarize.

    Finished runs are analyzed in fixed-size concurrent groups to bound the
    number of simultaneous GitHub requests. A failure while analyzing one run
    becomes that run's result and never aborts the batch. Unfinished runs
    are only counted; polling until they finish is the caller's job.
    """

    def __init__(
        self,
        locator: RunLocator,
        fetcher: LogFetcher,
        interpreter: LogInterpreter,
        settings: BatchSettings,
    ) -> None:
        self._locator = locator
        self._fetcher = fetcher
        self._interpreter = interpreter
        self._settings = settings

    async def lock_results(self, batch_start: datetime) -> LockBatchReport:
        runs = await self._locator.find_runs(batch_start)
        finished, pending = partition_runs(runs)
        logger.info(
            "Lock batch: %s finished, %s still running", len(finished), len(pending)
        )

        results = await self._in_groups(finished, self._analyze_lock)
        successful = sum(1 for result in results if result.locked)
        summary = LockBatchSummary(
            total_processed=len(results),
            successful_locks=successful,
            failed_locks=len(results) - successful,
            success_rate=round(successful / len(results) * 100) if results else 0,
            still_processing=len(pending),
            is_complete=not pending,
        )
        logger.info(
            "Lock batch summary: %s locked, %s failed, %s still processing",
            summary.successful_locks,
            summary.failed_locks,
            summary.still_processing,
        )
        return LockBatchReport(summary=summary, results=results)

    async def pricing_results(self, batch_start: datetime) -> PricingBatchReport:
        runs = await self._locator.find_runs(batch_start)
        finished, pending = partition_runs(runs)
        logger.info(
            "Pricing batch: %s finished, %s still running", len(finished), len(pending)
        )

        results = await self._in_groups(finished, self._analyze_pricing)
        successful = sum(1 for result in results if result.pricing_status == "success")
        summary = PricingBatchSummary(
            total_priced=len(results),
            successful_pricing=successful,
            failed_pricing=len(results) - successful,
            still_processing=len(pending),
            is_complete=not pending,
        )
        return PricingBatchReport(summary=summary, results=results)

    async def _in_groups(
        self,
        runs: Sequence[RunSummary],
        analyze: Callable[[RunSummary], Awaitable[ResultT]],
    ) -> List[ResultT]:
        size = self._settings.analysis_concurrency
        results: List[ResultT] = []
        for start in range(0, len(runs), size):
            group = runs[start : start + size]
            results.extend(await asyncio.gather(*(analyze(run) for run in group)))
        return results

    async def _analyze_lock(self, run: RunSummary) -> LoanResult:
        try:
            logs = await self._fetcher.fetch(run.run_id)
            return self._interpreter.interpret_lock(run, logs)
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Failed to analyze run %s", run.run_id)
            return LoanResult(
                workflow_id=run.run_id,
                loan_index=UNKNOWN,
                borrower_name=UNKNOWN,
                locked=False,
                error_message=f"Failed to analyze workflow results: {exc}",
                completed_at=run.updated_at,
                github_url=run.html_url,
                status="analysis_failed",
            )

    async def _analyze_pricing(self, run: RunSummary) -> PricingResult:
        try:
            logs = await self._fetcher.fetch(run.run_id)
            return self._interpreter.interpret_pricing(run, logs)
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("Failed to extract pricing from run %s", run.run_id)
            return PricingResult(
                workflow_id=run.run_id,
                pricing_status="error",
                error_message=f"Failed to extract pricing data: {exc}",
                completed_at=run.updated_at,
                github_url=run.html_url,
                extraction_status="analysis_failed",
            )


__all__ = [
    "BatchResultAggregator",
    "LockBatchReport",
    "PricingBatchReport",
    "partition_runs",
]

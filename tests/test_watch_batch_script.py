"""Tests for the bounded batch watcher."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from app.schemas import LockBatchSummary, PricingBatchSummary
from app.services import LockBatchReport, PricingBatchReport
from scripts import watch_batch

START = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _lock_report(still_processing: int) -> LockBatchReport:
    done = 3 - still_processing
    return LockBatchReport(
        summary=LockBatchSummary(
            total_processed=done,
            successful_locks=done,
            failed_locks=0,
            success_rate=100 if done else 0,
            still_processing=still_processing,
            is_complete=still_processing == 0,
        ),
        results=[],
    )


class ScriptedAggregator:
    def __init__(self, pending: list[int]) -> None:
        self.pending = pending
        self.polls = 0

    async def lock_results(self, batch_start: datetime) -> LockBatchReport:
        self.polls += 1
        return _lock_report(self.pending.pop(0) if len(self.pending) > 1 else self.pending[0])

    async def pricing_results(self, batch_start: datetime) -> PricingBatchReport:
        self.polls += 1
        return PricingBatchReport(
            summary=PricingBatchSummary(
                total_priced=2,
                successful_pricing=2,
                failed_pricing=0,
                still_processing=0,
                is_complete=True,
            ),
            results=[],
        )


@pytest.mark.asyncio
async def test_watch_stops_once_complete(capsys: pytest.CaptureFixture[str]) -> None:
    aggregator = ScriptedAggregator([2, 2, 0])

    complete = await watch_batch.watch(aggregator, START, interval=0, max_polls=10)

    assert complete is True
    assert aggregator.polls == 3
    output = capsys.readouterr().out
    # Unchanged summaries are printed once.
    assert output.count("running=2") == 1
    assert "batch complete" in output


@pytest.mark.asyncio
async def test_watch_gives_up_after_max_polls(capsys: pytest.CaptureFixture[str]) -> None:
    aggregator = ScriptedAggregator([1])

    complete = await watch_batch.watch(aggregator, START, interval=0, max_polls=3)

    assert complete is False
    assert aggregator.polls == 3
    assert "gave up after 3 polls" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_watch_pricing_mode() -> None:
    aggregator = ScriptedAggregator([0])

    assert await watch_batch.watch(aggregator, START, mode="pricing", interval=0, max_polls=2)
    assert aggregator.polls == 1

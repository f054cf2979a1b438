"""Poll a submission batch and print its progress until every run finishes."""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime
from typing import Optional, Sequence

from app.clients import GitHubActionsClient
from app.core.config import AppSettings, ConfigurationError, get_settings
from app.core.logging import configure_logging
from app.services import BatchResultAggregator, LogFetcher, LogInterpreter, RunLocator
from app.services.run_locator import parse_timestamp


def _timestamp() -> str:
    return datetime.now().strftime("%H:%M:%S")


def build_aggregator(settings: AppSettings) -> BatchResultAggregator:
    settings.github.require_token()
    client = GitHubActionsClient(settings.github)
    return BatchResultAggregator(
        locator=RunLocator(client, settings.batch),
        fetcher=LogFetcher(client),
        interpreter=LogInterpreter(
            trust_conclusion_success=settings.batch.trust_conclusion_success
        ),
        settings=settings.batch,
    )


async def _summary_line(
    aggregator: BatchResultAggregator, start: datetime, mode: str
) -> tuple[str, bool]:
    if mode == "pricing":
        report = await aggregator.pricing_results(start)
        s = report.summary
        line = (
            f"priced={s.total_priced} ok={s.successful_pricing} "
            f"failed={s.failed_pricing} running={s.still_processing}"
        )
        return line, s.is_complete

    report = await aggregator.lock_results(start)
    s = report.summary
    line = (
        f"processed={s.total_processed} locked={s.successful_locks} "
        f"failed={s.failed_locks} rate={s.success_rate}% running={s.still_processing}"
    )
    return line, s.is_complete


async def watch(
    aggregator: BatchResultAggregator,
    start: datetime,
    *,
    mode: str = "lock",
    interval: float = 30.0,
    max_polls: int = 20,
) -> bool:
    """Poll at most ``max_polls`` times; return whether the batch completed."""
    last_line: Optional[str] = None
    for attempt in range(1, max_polls + 1):
        line, complete = await _summary_line(aggregator, start, mode)
        if line != last_line:
            print(f"[{_timestamp()}] poll {attempt}/{max_polls} | {line}")
            last_line = line
        if complete:
            print(f"[{_timestamp()}] batch complete")
            return True
        if attempt < max_polls:
            await asyncio.sleep(interval)
    print(f"[{_timestamp()}] gave up after {max_polls} polls")
    return False


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Watch a loan automation batch.")
    parser.add_argument(
        "start_time",
        help="Batch start time as ISO-8601, e.g. 2024-05-01T12:00:00Z.",
    )
    parser.add_argument("--mode", choices=("lock", "pricing"), default="lock")
    parser.add_argument("--interval", type=float, default=30.0, help="Seconds between polls.")
    parser.add_argument("--max-polls", type=int, default=20)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings.log_level)
    try:
        aggregator = build_aggregator(settings)
    except ConfigurationError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    complete = asyncio.run(
        watch(
            aggregator,
            parse_timestamp(args.start_time),
            mode=args.mode,
            interval=max(args.interval, 0.0),
            max_polls=max(args.max_polls, 1),
        )
    )
    return 0 if complete else 1


if __name__ == "__main__":  # pragma: no cover - manual execution path
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nStopped watching.")

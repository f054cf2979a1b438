"""Tests for turning GitHub log downloads into text."""

from __future__ import annotations

import gzip

import httpx
import pytest

try:
    from ._factories import zipped_logs
except ImportError:  # pragma: no cover - direct execution
    from _factories import zipped_logs  # type: ignore

from app.clients import LogUnavailableError
from app.services import LogDecodeError, LogFetcher, decode_log_payload


def test_decode_plain_utf8_strips_bom() -> None:
    assert decode_log_payload("\ufeffLOCK_RESULT: {}".encode("utf-8")) == "LOCK_RESULT: {}"


def test_decode_falls_back_to_latin1() -> None:
    assert decode_log_payload(b"Borrower: Jos\xe9") == "Borrower: José"


def test_decode_gzip_wrapped_text() -> None:
    assert decode_log_payload(gzip.compress(b"Processing loan 4")) == "Processing loan 4"


def test_decode_zip_archive_keeps_text_members_in_order() -> None:
    archive = zipped_logs(
        {
            "2_lock.txt": "Submit Lock button clicked successfully",
            "1_setup.txt": "Processing loan 2",
            "screenshot.png": "not text",
        }
    )

    text = decode_log_payload(archive)

    assert text.index("1_setup.txt") < text.index("2_lock.txt")
    assert "Processing loan 2" in text
    assert "not text" not in text


def test_decode_corrupt_zip_raises() -> None:
    with pytest.raises(LogDecodeError):
        decode_log_payload(b"PK\x03\x04garbage")


def test_decode_corrupt_gzip_raises() -> None:
    truncated = gzip.compress(b"Processing loan 4")[:10] + b"\xff" * 40

    with pytest.raises(LogDecodeError):
        decode_log_payload(truncated)


class StubLogClient:
    def __init__(self, *, archive=None, jobs=None, job_logs=None) -> None:
        self.archive = archive
        self.jobs = jobs or []
        self.job_logs = job_logs or {}
        self.job_downloads: list[int] = []

    async def download_run_logs(self, run_id: int) -> bytes:
        if isinstance(self.archive, Exception):
            raise self.archive
        return self.archive

    async def list_jobs(self, run_id: int):
        if isinstance(self.jobs, Exception):
            raise self.jobs
        return self.jobs

    async def download_job_logs(self, job_id: int) -> bytes:
        self.job_downloads.append(job_id)
        payload = self.job_logs.get(job_id)
        if payload is None:
            raise LogUnavailableError(f"job {job_id}", 404)
        return payload


@pytest.mark.asyncio
async def test_fetcher_prefers_run_archive() -> None:
    client = StubLogClient(archive=zipped_logs({"1_lock.txt": "Processing loan 1"}))

    logs = await LogFetcher(client).fetch(11)

    assert logs.available
    assert logs.source == "run_archive"
    assert client.job_downloads == []


@pytest.mark.asyncio
async def test_fetcher_falls_back_to_job_logs() -> None:
    client = StubLogClient(
        archive=LogUnavailableError("run 11", 404),
        jobs=[{"id": 1, "name": "process-loan-3"}, {"id": 2, "name": "cleanup"}],
        job_logs={1: b"Loan lock completed successfully"},
    )

    logs = await LogFetcher(client).fetch(11)

    assert logs.source == "job_logs"
    assert "Loan lock completed successfully" in logs.text
    assert client.job_downloads == [1, 2]
    assert [job["name"] for job in logs.jobs] == ["process-loan-3", "cleanup"]


@pytest.mark.asyncio
async def test_fetcher_reports_unavailable_without_raising() -> None:
    request = httpx.Request("GET", "https://api.github.test")
    client = StubLogClient(
        archive=LogUnavailableError("run 11", 410),
        jobs=httpx.ConnectError("boom", request=request),
    )

    logs = await LogFetcher(client).fetch(11)

    assert not logs.available
    assert logs.text is None


@pytest.mark.asyncio
async def test_fetcher_falls_back_when_archive_is_corrupt() -> None:
    client = StubLogClient(
        archive=b"PK\x03\x04truncated download",
        jobs=[{"id": 1, "name": "process-loan-3"}, {"id": 2, "name": "cleanup"}],
        job_logs={
            1: gzip.compress(b"Loan lock completed successfully"),
            2: gzip.compress(b"cleanup")[:10] + b"\xff" * 40,
        },
    )

    logs = await LogFetcher(client).fetch(11)

    assert logs.source == "job_logs"
    assert "Loan lock completed successfully" in logs.text
    assert "cleanup" not in logs.text
    assert client.job_downloads == [1, 2]

"""
Download workflow logs and turn whatever GitHub returns into searchable text.
"""

from __future__ import annotations

import gzip
import io
import logging
import zipfile
import zlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

from app.clients.github_actions import GitHubActionsClient, LogUnavailableError

logger = logging.getLogger(__name__)

_GZIP_MAGIC = b"\x1f\x8b"
_ZIP_MAGIC = b"PK\x03\x04"
_TEXT_SUFFIXES = (".txt", ".log")


class LogDecodeError(ValueError):
    """Raised when a payload carries archive magic bytes but cannot be unpacked."""


def decode_log_payload(payload: bytes) -> str:
    """Decode a log download: gzip, zip archive, or raw text in any encoding."""
    if payload.startswith(_GZIP_MAGIC):
        try:
            inflated = gzip.decompress(payload)
        except (OSError, EOFError, zlib.error) as exc:
            raise LogDecodeError(f"corrupt gzip payload: {exc}") from exc
        return decode_log_payload(inflated)
    if payload.startswith(_ZIP_MAGIC):
        try:
            return _decode_zip(payload)
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as exc:
            raise LogDecodeError(f"corrupt zip archive: {exc}") from exc
    return _decode_text(payload)


def _decode_zip(payload: bytes) -> str:
    sections: List[str] = []
    with zipfile.ZipFile(io.BytesIO(payload)) as archive:
        for name in sorted(archive.namelist()):
            if not name.lower().endswith(_TEXT_SUFFIXES):
                continue
            sections.append(f"===== {name} =====")
            sections.append(_decode_text(archive.read(name)))
    return "\n".join(sections)


def _decode_text(payload: bytes) -> str:
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError:
        text = payload.decode("latin-1")
    return text.lstrip("\ufeff")


@dataclass(slots=True)
class FetchedLogs:
    """Decoded log text for a run plus the job metadata seen along the way."""

    text: Optional[str]
    jobs: List[Dict[str, Any]] = field(default_factory=list)
    source: str = "unavailable"

    @property
    def available(self) -> bool:
        return bool(self.text)


class LogFetcher:
    """Retrieve a run's logs, preferring the full archive over per-job logs."""

    def __init__(self, client: GitHubActionsClient) -> None:
        self._client = client

    async def fetch(self, run_id: int) -> FetchedLogs:
        try:
            archive = await self._client.download_run_logs(run_id)
            text = decode_log_payload(archive)
            if text.strip():
                return FetchedLogs(text=text, source="run_archive")
        except (LogUnavailableError, LogDecodeError, httpx.HTTPError) as exc:
            logger.warning("Run archive unavailable for run %s: %s", run_id, exc)

        return await self._fetch_job_logs(run_id)

    async def _fetch_job_logs(self, run_id: int) -> FetchedLogs:
        try:
            jobs = await self._client.list_jobs(run_id)
        except httpx.HTTPError as exc:
            logger.warning("Could not list jobs for run %s: %s", run_id, exc)
            return FetchedLogs(text=None)

        sections: List[str] = []
        for job in jobs:
            try:
                payload = await self._client.download_job_logs(job["id"])
            except (LogUnavailableError, httpx.HTTPError) as exc:
                logger.warning("Job log unavailable for run %s: %s", run_id, exc)
                continue
            try:
                text = decode_log_payload(payload)
            except LogDecodeError as exc:
                logger.warning("Job log for run %s could not be decoded: %s", run_id, exc)
                continue
            sections.append(f"===== {job.get('name', job['id'])} =====")
            sections.append(text)

        if not sections:
            return FetchedLogs(text=None, jobs=jobs)
        return FetchedLogs(text="\n".join(sections), jobs=jobs, source="job_logs")


__all__ = ["FetchedLogs", "LogDecodeError", "LogFetcher", "decode_log_payload"]

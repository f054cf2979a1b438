"""HTTP utilities providing retry/backoff semantics."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

import httpx

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class RetryConfig:
    def __init__(
        self,
        *,
        attempts: int = 3,
        backoff_seconds: float = 1.0,
        retry_statuses: frozenset[int] = _RETRYABLE_STATUS_CODES,
    ) -> None:
        self.attempts = attempts
        self.backoff_seconds = backoff_seconds
        self.retry_statuses = retry_statuses


def _is_retryable(exc: httpx.HTTPError, config: RetryConfig) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in config.retry_statuses
    return isinstance(exc, httpx.TransportError)


async def request_with_retry(
    func: Callable[..., Awaitable[httpx.Response]],
    *args,
    retry_config: RetryConfig | None = None,
    **kwargs,
) -> httpx.Response:
    """Invoke ``func`` and raise for non-2xx, retrying transient failures only."""
    config = retry_config or RetryConfig()
    attempt = 0
    last_exception: Exception | None = None

    while attempt < config.attempts:
        try:
            response = await func(*args, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPError as exc:
            if not _is_retryable(exc, config):
                raise
            last_exception = exc
            attempt += 1
            if attempt >= config.attempts:
                break
            logger.warning(
                "Transient HTTP failure (attempt %s/%s): %s",
                attempt,
                config.attempts,
                exc,
            )
            await asyncio.sleep(config.backoff_seconds * attempt)

    if last_exception is not None:
        raise last_exception
    raise RuntimeError("Request failed without raising an exception")


__all__ = ["RetryConfig", "request_with_retry"]

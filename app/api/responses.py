"""JSON envelope helpers shared by the routes and exception handlers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi.responses import JSONResponse


def utc_timestamp() -> str:
    """Current UTC time in the ``2024-05-01T12:00:00.000Z`` form browsers emit."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def error_response(
    status_code: int,
    message: str,
    *,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> JSONResponse:
    """Build the ``{success: false, message, timestamp}`` error envelope."""
    body: dict[str, Any] = {"success": False, "message": message, **extra}
    body["timestamp"] = utc_timestamp()
    return JSONResponse(status_code=status_code, content=body, headers=headers)


__all__ = ["error_response", "utc_timestamp"]

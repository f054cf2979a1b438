"""AWS Lambda entrypoint for the loan automation HTTP handlers.

Wraps the FastAPI application so API Gateway events reach the same routes
that run locally under uvicorn.
"""

from __future__ import annotations

from typing import Any


def __getattr__(name: str) -> Any:
    if name == "lambda_handler":
        from .handler import lambda_handler as loaded_lambda_handler

        return loaded_lambda_handler
    raise AttributeError(name)


__all__ = ["lambda_handler"]

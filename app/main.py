"""
FastAPI application entrypoint for the loan automation handlers.
"""

from __future__ import annotations

import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.responses import error_response
from app.api.routes import router as api_router
from app.clients import DispatchError
from app.core.config import ConfigurationError, get_settings
from app.core.logging import configure_logging

logger = logging.getLogger(__name__)


def _describe_validation_error(exc: RequestValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{location or 'body'}: {error.get('msg', 'invalid value')}")
    return "Missing or invalid request fields - " + "; ".join(problems)


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as ``{success: false, message, timestamp}``."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return error_response(400, _describe_validation_error(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 405:
            return error_response(405, "Method not allowed")
        return error_response(exc.status_code, str(exc.detail))

    @app.exception_handler(ConfigurationError)
    async def configuration_exception_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        logger.error("Configuration error: %s", exc)
        return error_response(500, str(exc))

    @app.exception_handler(DispatchError)
    async def dispatch_exception_handler(
        request: Request, exc: DispatchError
    ) -> JSONResponse:
        return error_response(
            500,
            str(exc),
            upstreamStatus=exc.status_code,
            upstreamBody=exc.body,
        )

    @app.exception_handler(httpx.HTTPError)
    async def github_exception_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
        logger.error("GitHub request failed for %s: %s", request.url.path, exc)
        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            return error_response(
                500, f"GitHub API request failed: {status}", upstreamStatus=status
            )
        return error_response(500, f"GitHub API request failed: {exc}")

    # Runs outside CORSMiddleware, so the header is set here.
    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error for %s %s", request.method, request.url.path)
        return error_response(
            500,
            str(exc) or "Internal server error",
            headers={"Access-Control-Allow-Origin": "*"},
        )


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)
    if not settings.github.token:
        logger.warning("GITHUB_TOKEN is not set; dispatch and result endpoints will fail")

    app = FastAPI(
        title="LoanNex Automation Bridge",
        version="0.1.0",
        description=(
            "Triggers the GitHub Actions loan automation and reads lock and "
            "pricing results back from its run logs."
        ),
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    register_exception_handlers(app)
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]

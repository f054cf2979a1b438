"""
AWS Lambda entrypoint adapting API Gateway events to the FastAPI app.
"""

from __future__ import annotations

from mangum import Mangum

from app.main import app

lambda_handler = Mangum(app, lifespan="off")

__all__ = ["lambda_handler"]

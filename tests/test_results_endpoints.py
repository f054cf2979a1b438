"""Endpoint tests for the batch result handlers."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except ImportError:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timezone

import httpx
import pytest

from app.main import app
from app.schemas import (
    LoanResult,
    LockBatchSummary,
    PricingBatchSummary,
    PricingOption,
    PricingResult,
)
from app.services import LockBatchReport, PricingBatchReport

pytestmark = pytest.mark.anyio

COMPLETED_AT = datetime(2024, 5, 1, 12, 6, tzinfo=timezone.utc)


class StubAggregator:
    def __init__(self) -> None:
        self.calls: list[tuple[str, datetime]] = []

    async def lock_results(self, batch_start: datetime) -> LockBatchReport:
        self.calls.append(("lock", batch_start))
        return LockBatchReport(
            summary=LockBatchSummary(
                total_processed=1,
                successful_locks=1,
                failed_locks=0,
                success_rate=100,
                still_processing=1,
                is_complete=False,
            ),
            results=[
                LoanResult(
                    workflow_id=101,
                    loan_index=0,
                    borrower_name="Ana Ruiz",
                    nex_id="NX123",
                    locked=True,
                    completed_at=COMPLETED_AT,
                    github_url="https://github.com/crendy22/llpa-rate-comparator/actions/runs/101",
                    extraction_status="lock_marker",
                )
            ],
        )

    async def pricing_results(self, batch_start: datetime) -> PricingBatchReport:
        self.calls.append(("pricing", batch_start))
        return PricingBatchReport(
            summary=PricingBatchSummary(
                total_priced=1,
                successful_pricing=1,
                failed_pricing=0,
                still_processing=0,
                is_complete=True,
            ),
            results=[
                PricingResult(
                    workflow_id=202,
                    loan_index=3,
                    borrower_name="Jane Doe",
                    pricing_status="success",
                    interest_rate=6.875,
                    investor="Acme",
                    all_pricing_options=[PricingOption(interest_rate=6.875, investor="Acme")],
                    extraction_status="pricing_marker",
                )
            ],
        )


@pytest.fixture()
def aggregator():
    from app import dependencies

    stub = StubAggregator()
    app.dependency_overrides.clear()
    app.dependency_overrides[dependencies.get_batch_aggregator] = lambda: stub
    yield stub
    app.dependency_overrides.clear()


async def _post(path: str, payload) -> httpx.Response:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as client:
        return await client.post(path, json=payload)


async def test_check_batch_results_shape(aggregator) -> None:
    response = await _post("/api/check-batch-results", {"batchStartTime": "2024-05-01T12:00:00Z"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["summary"] == {
        "totalProcessed": 1,
        "successfulLocks": 1,
        "failedLocks": 0,
        "successRate": 100,
        "stillProcessing": 1,
        "isComplete": False,
    }
    (result,) = body["results"]
    assert result["workflowId"] == 101
    assert result["nexId"] == "NX123"
    assert result["locked"] is True
    assert result["status"] == "analyzed"
    assert aggregator.calls == [("lock", datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))]


async def test_get_pricing_results_shape(aggregator) -> None:
    response = await _post("/api/get-pricing-results", {"batchStartTime": "2024-05-01T12:00:00Z"})

    assert response.status_code == 200
    body = response.json()
    assert body["allPricingComplete"] is True
    assert body["summary"]["totalPriced"] == 1
    (result,) = body["pricingResults"]
    assert result["borrowerName"] == "Jane Doe"
    assert result["interestRate"] == 6.875
    assert result["investor"] == "Acme"
    assert result["allPricingOptions"][0]["investor"] == "Acme"
    assert result["pricingStatus"] == "success"


async def test_batch_start_accepts_epoch_milliseconds(aggregator) -> None:
    response = await _post("/api/check-batch-results", {"batchStartTime": 1714564800000})

    assert response.status_code == 200
    _, start = aggregator.calls[0]
    assert start == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize("payload", [{}, {"batchStartTime": "yesterday"}])
async def test_missing_batch_start_is_rejected(aggregator, payload) -> None:
    response = await _post("/api/check-batch-results", payload)

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert aggregator.calls == []


async def test_github_failure_keeps_cors_header(github_settings, batch_settings) -> None:
    from app import dependencies
    from app.clients import GitHubActionsClient
    from app.core.config import AppSettings

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"message": "Bad credentials"})

    settings = AppSettings(github=github_settings, batch=batch_settings)
    app.dependency_overrides.clear()
    app.dependency_overrides.update(
        {
            dependencies.get_app_settings: lambda: settings,
            dependencies.get_github_client: lambda: GitHubActionsClient(
                github_settings, transport=httpx.MockTransport(handler)
            ),
        }
    )
    try:
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://testserver"
        ) as client:
            response = await client.post(
                "/api/check-batch-results",
                json={"batchStartTime": "2024-05-01T12:00:00Z"},
                headers={"Origin": "https://rates.example.com"},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.headers["access-control-allow-origin"] == "*"
    body = response.json()
    assert body["success"] is False
    assert body["upstreamStatus"] == 401


async def test_unexpected_failure_keeps_cors_header() -> None:
    from app import dependencies

    class FailingAggregator:
        async def lock_results(self, batch_start: datetime) -> LockBatchReport:
            raise RuntimeError("aggregation exploded")

    app.dependency_overrides.clear()
    app.dependency_overrides[dependencies.get_batch_aggregator] = FailingAggregator
    try:
        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app, raise_app_exceptions=False),
            base_url="http://testserver",
        ) as client:
            response = await client.post(
                "/api/check-batch-results",
                json={"batchStartTime": "2024-05-01T12:00:00Z"},
                headers={"Origin": "https://rates.example.com"},
            )
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.headers["access-control-allow-origin"] == "*"
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "aggregation exploded"


async def test_health() -> None:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    ) as client:
        response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

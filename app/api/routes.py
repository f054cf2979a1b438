"""
FastAPI routes for triggering the loan automation and collecting its results.

Trigger endpoints return as soon as GitHub accepts the dispatch; callers poll
the result endpoints until the batch reports complete.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response

from app.api.responses import utc_timestamp
from app.dependencies import get_batch_aggregator, get_loan_dispatcher
from app.schemas import (
    BatchResultsRequest,
    BatchResultsResponse,
    PricingResultsResponse,
    SelectiveLockRequest,
    TriggerLoanRequest,
    TriggerResponse,
    WorkflowStatus,
)
from app.services import (
    DispatchEvent,
    DispatchReceipt,
    DispatchRequest,
    normalize_selective_lock_record,
)

router = APIRouter()
logger = logging.getLogger(__name__)

ENDPOINTS = (
    "trigger-loan",
    "trigger-pricing-only",
    "trigger-selective-locks",
    "get-pricing-results",
    "check-batch-results",
)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.options("/{endpoint}", include_in_schema=False)
async def preflight(endpoint: str) -> Response:
    """Answer bare OPTIONS requests; CORS preflights are handled by middleware."""
    if endpoint not in ENDPOINTS:
        return Response(status_code=HTTPStatus.NOT_FOUND)
    return Response(status_code=HTTPStatus.OK)


def _trigger_response(
    receipt: DispatchReceipt, *, message: str, workflow_status: WorkflowStatus, **extra: Any
) -> TriggerResponse:
    return TriggerResponse(
        message=message,
        workflow_run_id=receipt.run_id,
        workflow_status=workflow_status,
        loan_index=receipt.request.loan_index,
        timestamp=utc_timestamp(),
        **extra,
    )


@router.post("/trigger-loan", response_model=TriggerResponse)
async def trigger_loan(
    payload: TriggerLoanRequest,
    dispatcher: Annotated[Any, Depends(get_loan_dispatcher)],
) -> TriggerResponse:
    """Start the price-and-lock automation for one loan."""
    receipt = await dispatcher.dispatch(
        DispatchRequest(
            event_type=DispatchEvent.PROCESS_LOANS,
            loan_record=payload.loan_data,
            loan_index=payload.loan_index,
            credentials=payload.credentials,
        )
    )
    return _trigger_response(
        receipt,
        message="GitHub Actions workflow triggered successfully",
        workflow_status=WorkflowStatus(
            message="Automation started - workflow is now running",
            details=(
                "Loan automation triggered successfully. "
                "Check batch results in a few minutes for the actual lock status."
            ),
            run_url=receipt.run_url,
            conclusion="triggered",
        ),
    )


@router.post("/trigger-pricing-only", response_model=TriggerResponse)
async def trigger_pricing_only(
    payload: TriggerLoanRequest,
    dispatcher: Annotated[Any, Depends(get_loan_dispatcher)],
) -> TriggerResponse:
    """Start the automation in pricing mode; nothing is locked."""
    receipt = await dispatcher.dispatch(
        DispatchRequest(
            event_type=DispatchEvent.PRICE_LOANS_ONLY,
            loan_record=payload.loan_data,
            loan_index=payload.loan_index,
            credentials=payload.credentials,
            pricing_only=True,
        )
    )
    return _trigger_response(
        receipt,
        message="Pricing workflow triggered successfully",
        workflow_status=WorkflowStatus(
            message="Pricing automation started - workflow is now running",
            details=(
                "Loan pricing triggered successfully. "
                "Use the pricing results endpoint to get rates."
            ),
            run_url=receipt.run_url,
            conclusion="pricing_triggered",
            pricing_only=True,
        ),
    )


@router.post("/trigger-selective-locks", response_model=TriggerResponse)
async def trigger_selective_locks(
    payload: SelectiveLockRequest,
    dispatcher: Annotated[Any, Depends(get_loan_dispatcher)],
) -> TriggerResponse:
    """Lock a loan the user approved after reviewing its pricing."""
    loan_record, record_nex_id = normalize_selective_lock_record(payload.loan_data)
    nex_id = record_nex_id or None
    if not nex_id:
        logger.warning(
            "No NexID found for loan %s; fields present: %s",
            payload.loan_index,
            sorted(payload.loan_data),
        )

    receipt = await dispatcher.dispatch(
        DispatchRequest(
            event_type=DispatchEvent.SELECTIVE_LOCK,
            loan_record=loan_record,
            loan_index=payload.loan_index,
            credentials=payload.credentials,
            selective_lock=True,
            user_approved=True,
            nex_id=nex_id,
        )
    )
    if nex_id:
        message = f"Selective lock workflow triggered for NexID: {nex_id}"
        details = (
            f"User-approved loan lock triggered for NexID: {nex_id}. "
            "Check batch results for the actual lock status."
        )
    else:
        message = "Selective lock workflow triggered (no NexID found)"
        details = (
            "User-approved loan lock triggered (warning: no NexID found). "
            "Check batch results for the actual lock status."
        )
    return _trigger_response(
        receipt,
        message=message,
        workflow_status=WorkflowStatus(
            message="Selective lock automation started - workflow is now running",
            details=details,
            run_url=receipt.run_url,
            conclusion="selective_lock_triggered",
            selective_lock=True,
            nex_id=nex_id,
        ),
        nex_id=nex_id,
    )


@router.post("/get-pricing-results", response_model=PricingResultsResponse)
async def get_pricing_results(
    payload: BatchResultsRequest,
    aggregator: Annotated[Any, Depends(get_batch_aggregator)],
) -> PricingResultsResponse:
    """Collect pricing from every finished run in the batch window."""
    report = await aggregator.pricing_results(payload.batch_start_time)
    return PricingResultsResponse(
        pricing_results=report.results,
        all_pricing_complete=report.all_complete,
        summary=report.summary,
        timestamp=utc_timestamp(),
    )


@router.post("/check-batch-results", response_model=BatchResultsResponse)
async def check_batch_results(
    payload: BatchResultsRequest,
    aggregator: Annotated[Any, Depends(get_batch_aggregator)],
) -> BatchResultsResponse:
    """Collect lock outcomes for every finished run in the batch window."""
    report = await aggregator.lock_results(payload.batch_start_time)
    return BatchResultsResponse(
        summary=report.summary,
        results=report.results,
        timestamp=utc_timestamp(),
    )


__all__ = ["ENDPOINTS", "router"]

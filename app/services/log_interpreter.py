"""Classify finished automation runs from their decoded logs."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Union

from app.schemas import UNKNOWN, LoanResult, PricingOption, PricingResult, RunSummary
from app.services.log_fetcher import FetchedLogs
from app.services.log_rules import (
    LOCK_RULES,
    PRICING_RULES,
    RuleMatch,
    extract_borrower_name,
    extract_loan_index,
    extract_loan_index_from_jobs,
    extract_nex_id,
    first_match,
)

logger = logging.getLogger(__name__)

UNKNOWN_FAILURE = "Unknown error - check GitHub Actions logs for details"
LOGS_UNREADABLE = "Could not fetch workflow logs"
LOCK_UNCONFIRMED = (
    "Lock status unknown - workflow succeeded but no lock confirmation was found in the logs"
)
LOCK_UNCONFIRMED_NO_LOGS = (
    "Lock status unknown - workflow succeeded but its logs could not be read"
)
PRICING_NOT_FOUND = "Pricing data not found in workflow logs"

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def _coerce_float(value: Any) -> Optional[float]:
    """Accept 6.875, "6.875%", "$1,250.00"; anything else is None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMBER.search(str(value).replace(",", ""))
    return float(match.group()) if match else None


def _coerce_index(value: Any) -> Optional[int]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _pick(sources: List[Mapping[str, Any]], *keys: str) -> Any:
    for source in sources:
        for key in keys:
            value = source.get(key)
            if value not in (None, ""):
                return value
    return None


def _text_or_none(value: Any) -> Optional[str]:
    return None if value in (None, "") else str(value)


class LogInterpreter:
    """Turn one run's logs into a lock or pricing result.

    Rules are tried in priority order: marker line, success phrases, known
    failures, generic error lines, and finally the run conclusion. A
    successful conclusion alone never counts as a lock unless
    ``trust_conclusion_success`` is enabled.
    """

    def __init__(self, *, trust_conclusion_success: bool = False) -> None:
        self._trust_conclusion_success = trust_conclusion_success

    def interpret_lock(self, run: RunSummary, logs: FetchedLogs) -> LoanResult:
        text = logs.text or ""
        match = first_match(LOCK_RULES, text) if logs.available else None
        payload: Dict[str, Any] = (match.payload or {}) if match else {}

        loan_index = self._loan_index(text, logs, payload)
        borrower = payload.get("borrower_name") or extract_borrower_name(text) or UNKNOWN
        nex_id = _text_or_none(payload.get("nex_id") or payload.get("nexId")) or extract_nex_id(text)

        result = LoanResult(
            workflow_id=run.run_id,
            loan_index=loan_index,
            borrower_name=str(borrower),
            nex_id=nex_id,
            completed_at=run.updated_at,
            github_url=run.html_url,
            status="analyzed" if logs.available else "log_fetch_failed",
        )

        if match is None:
            return self._lock_from_conclusion(run, result, logs.available)

        result.extraction_status = match.kind
        result.locked = match.locked
        if match.kind == "success_pattern":
            result.success_pattern = match.rule
        elif not match.locked:
            result.error_message = match.message or self._marker_failure(payload)
            result.error_details = match.details
        logger.info(
            "Run %s classified via %s: locked=%s", run.run_id, match.kind, result.locked
        )
        return result

    def interpret_pricing(self, run: RunSummary, logs: FetchedLogs) -> PricingResult:
        text = logs.text or ""
        match = first_match(PRICING_RULES, text) if logs.available else None

        if match is not None and match.kind == "pricing_marker":
            return self._pricing_from_marker(run, logs, match)

        result = PricingResult(
            workflow_id=run.run_id,
            loan_index=self._loan_index(text, logs, {}),
            borrower_name=extract_borrower_name(text) or UNKNOWN,
            nex_id=extract_nex_id(text),
            completed_at=run.updated_at,
            github_url=run.html_url,
        )
        if match is not None:
            result.extraction_status = match.kind
            result.error_message = match.message
            return result

        result.extraction_status = "conclusion"
        if not logs.available and run.conclusion == "success":
            result.error_message = LOGS_UNREADABLE
        elif run.conclusion == "success":
            result.error_message = PRICING_NOT_FOUND
        else:
            result.error_message = self._failed_job_message(run, logs)
        return result

    # -- helpers -----------------------------------------------------------

    def _lock_from_conclusion(
        self, run: RunSummary, result: LoanResult, logs_available: bool
    ) -> LoanResult:
        result.extraction_status = "conclusion"
        if run.conclusion == "success":
            if self._trust_conclusion_success:
                result.locked = True
                return result
            result.error_message = (
                LOCK_UNCONFIRMED if logs_available else LOCK_UNCONFIRMED_NO_LOGS
            )
        elif not logs_available:
            result.error_message = LOGS_UNREADABLE
        elif run.conclusion == "failure":
            result.error_message = UNKNOWN_FAILURE
        else:
            result.error_message = f"Workflow ended with conclusion: {run.conclusion}"
        return result

    @staticmethod
    def _marker_failure(payload: Mapping[str, Any]) -> str:
        status = payload.get("lock_status") or "unknown"
        return f"Lock not completed (reported status: {status})"

    @staticmethod
    def _loan_index(
        text: str, logs: FetchedLogs, payload: Mapping[str, Any]
    ) -> Union[int, str]:
        index = _coerce_index(payload.get("loan_index"))
        if index is None and text:
            index = extract_loan_index(text)
        if index is None and logs.jobs:
            index = extract_loan_index_from_jobs([job.get("name", "") for job in logs.jobs])
        return UNKNOWN if index is None else index

    @staticmethod
    def _failed_job_message(run: RunSummary, logs: FetchedLogs) -> str:
        failed = next(
            (job for job in logs.jobs if job.get("conclusion") == "failure"), None
        )
        if failed is not None:
            return f"Pricing failed: {failed.get('name', 'unknown')} job failed"
        return f"Pricing workflow failed with conclusion: {run.conclusion}"

    def _pricing_from_marker(
        self, run: RunSummary, logs: FetchedLogs, match: RuleMatch
    ) -> PricingResult:
        payload = match.payload or {}
        best = payload.get("best_rate_option") or payload.get("best_option") or {}
        sources = [best, payload] if isinstance(best, dict) else [payload]
        status = str(payload.get("pricing_status", "")).strip().lower()
        text = logs.text or ""

        raw_options = payload.get("all_pricing_options") or payload.get("pricing_options") or []
        options = [
            self._pricing_option(option)
            for option in raw_options
            if isinstance(option, dict)
        ]

        result = PricingResult(
            workflow_id=run.run_id,
            loan_index=self._loan_index(text, logs, payload),
            borrower_name=str(
                payload.get("borrower_name") or extract_borrower_name(text) or UNKNOWN
            ),
            pricing_status="success" if status == "success" else "error",
            interest_rate=_coerce_float(_pick(sources, "interest_rate", "rate")),
            price_points=_coerce_float(_pick(sources, "price_points", "price", "points")),
            price_cost=_coerce_float(_pick(sources, "price_cost", "cost")),
            product_type=_text_or_none(_pick(sources, "product_type", "product")),
            program_name=_text_or_none(_pick(sources, "program_name", "program")),
            investor=_text_or_none(_pick(sources, "investor")),
            monthly_payment=_coerce_float(_pick(sources, "monthly_payment", "payment")),
            loan_amount=_coerce_float(_pick([payload], "loan_amount")),
            property_type=_text_or_none(_pick([payload], "property_type")),
            all_pricing_options=options,
            nex_id=_text_or_none(_pick([payload], "nex_id", "nexId")) or extract_nex_id(text),
            save_status=_text_or_none(_pick([payload], "save_status")),
            completed_at=run.updated_at,
            github_url=run.html_url,
            extraction_status="pricing_marker",
        )
        if result.pricing_status == "error":
            result.error_message = match.message or f"Pricing reported status: {status or 'unknown'}"
        logger.info(
            "Run %s pricing marker found: status=%s rate=%s",
            run.run_id,
            result.pricing_status,
            result.interest_rate,
        )
        return result

    @staticmethod
    def _pricing_option(option: Mapping[str, Any]) -> PricingOption:
        sources = [option]
        return PricingOption(
            interest_rate=_coerce_float(_pick(sources, "interest_rate", "rate")),
            price_points=_coerce_float(_pick(sources, "price_points", "price", "points")),
            price_cost=_coerce_float(_pick(sources, "price_cost", "cost")),
            product_type=_text_or_none(_pick(sources, "product_type", "product")),
            program_name=_text_or_none(_pick(sources, "program_name", "program")),
            monthly_payment=_coerce_float(_pick(sources, "monthly_payment", "payment")),
            investor=_text_or_none(_pick(sources, "investor")),
        )


__all__ = ["LogInterpreter"]

"""
Pydantic models describing workflow runs and the results scraped from their logs.
"""

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import Field

from .loans import CamelModel

UNKNOWN = "Unknown"


class RunSummary(CamelModel):
    """Subset of a GitHub Actions workflow run resource."""

    run_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    status: str
    conclusion: Optional[str] = None
    html_url: str = ""
    name: Optional[str] = None
    event: Optional[str] = None

    @classmethod
    def from_api(cls, payload: dict) -> "RunSummary":
        return cls(
            run_id=payload["id"],
            created_at=payload["created_at"],
            updated_at=payload.get("updated_at"),
            status=payload.get("status") or "queued",
            conclusion=payload.get("conclusion"),
            html_url=payload.get("html_url") or "",
            name=payload.get("name"),
            event=payload.get("event"),
        )

    @property
    def is_finished(self) -> bool:
        return self.status == "completed" and self.conclusion is not None


class LoanResult(CamelModel):
    """Lock outcome for one automation run."""

    workflow_id: int
    loan_index: Union[int, str] = UNKNOWN
    borrower_name: str = UNKNOWN
    nex_id: Optional[str] = None
    locked: bool = False
    error_message: Optional[str] = None
    error_details: Optional[str] = None
    completed_at: Optional[datetime] = None
    github_url: str = ""
    status: Literal["analyzed", "log_fetch_failed", "analysis_failed"] = "analyzed"
    extraction_status: Literal[
        "lock_marker",
        "success_pattern",
        "failure_pattern",
        "generic_error",
        "conclusion",
        "none",
    ] = "none"
    success_pattern: Optional[str] = None


class PricingOption(CamelModel):
    """One rate/price row offered by the pricing engine."""

    interest_rate: Optional[float] = None
    price_points: Optional[float] = None
    price_cost: Optional[float] = None
    product_type: Optional[str] = None
    program_name: Optional[str] = None
    monthly_payment: Optional[float] = None
    investor: Optional[str] = None


class PricingResult(CamelModel):
    """Pricing outcome for one pricing-only automation run."""

    workflow_id: int
    loan_index: Union[int, str] = UNKNOWN
    borrower_name: str = UNKNOWN
    pricing_status: Literal["success", "error"] = "error"
    interest_rate: Optional[float] = None
    price_points: Optional[float] = None
    price_cost: Optional[float] = None
    product_type: Optional[str] = None
    program_name: Optional[str] = None
    investor: Optional[str] = None
    monthly_payment: Optional[float] = None
    loan_amount: Optional[float] = None
    property_type: Optional[str] = None
    all_pricing_options: List[PricingOption] = Field(default_factory=list)
    nex_id: Optional[str] = None
    save_status: Optional[str] = None
    error_message: Optional[str] = None
    completed_at: Optional[datetime] = None
    github_url: str = ""
    extraction_status: Literal[
        "pricing_marker",
        "failure_pattern",
        "generic_error",
        "conclusion",
        "analysis_failed",
    ] = "conclusion"


class LockBatchSummary(CamelModel):
    total_processed: int
    successful_locks: int
    failed_locks: int
    success_rate: int
    still_processing: int
    is_complete: bool


class PricingBatchSummary(CamelModel):
    total_priced: int
    successful_pricing: int
    failed_pricing: int
    still_processing: int
    is_complete: bool


class BatchResultsResponse(CamelModel):
    success: bool = True
    summary: LockBatchSummary
    results: List[LoanResult]
    timestamp: str


class PricingResultsResponse(CamelModel):
    success: bool = True
    pricing_results: List[PricingResult]
    all_pricing_complete: bool
    summary: PricingBatchSummary
    timestamp: str


__all__ = [
    "BatchResultsResponse",
    "LoanResult",
    "LockBatchSummary",
    "PricingBatchSummary",
    "PricingOption",
    "PricingResult",
    "PricingResultsResponse",
    "RunSummary",
    "UNKNOWN",
]

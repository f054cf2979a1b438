"""Public schema exports."""

from .loans import (
    BatchResultsRequest,
    CamelModel,
    PortalCredentials,
    SelectiveLockRequest,
    TriggerLoanRequest,
    TriggerResponse,
    WorkflowStatus,
)
from .results import (
    UNKNOWN,
    BatchResultsResponse,
    LoanResult,
    LockBatchSummary,
    PricingBatchSummary,
    PricingOption,
    PricingResult,
    PricingResultsResponse,
    RunSummary,
)

__all__ = [
    "BatchResultsRequest",
    "BatchResultsResponse",
    "CamelModel",
    "LoanResult",
    "LockBatchSummary",
    "PortalCredentials",
    "PricingBatchSummary",
    "PricingOption",
    "PricingResult",
    "PricingResultsResponse",
    "RunSummary",
    "SelectiveLockRequest",
    "TriggerLoanRequest",
    "TriggerResponse",
    "UNKNOWN",
    "WorkflowStatus",
]

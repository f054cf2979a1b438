"""
Pydantic models for automation trigger requests and responses.
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON with the front-end."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PortalCredentials(BaseModel):
    """LoanNex login forwarded untouched to the automation job."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class TriggerLoanRequest(CamelModel):
    """Incoming payload for triggering one loan through the automation."""

    loan_data: Dict[str, Any] = Field(
        ..., description="Spreadsheet row describing the loan, passed through as-is."
    )
    loan_index: int = Field(..., description="Zero-based row index in the caller's batch.")
    credentials: PortalCredentials

    @field_validator("loan_data")
    @classmethod
    def _require_loan_fields(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        if not value:
            raise ValueError("loanData must contain at least one field")
        return value


class SelectiveLockRequest(TriggerLoanRequest):
    """Trigger payload for locking a loan the user approved after pricing review."""

    is_selective_lock: bool = Field(True)


class BatchResultsRequest(CamelModel):
    """Identifies a submission batch by the time its first dispatch was sent."""

    batch_start_time: datetime = Field(
        ..., description="ISO-8601 timestamp or epoch milliseconds of the first dispatch."
    )


class WorkflowStatus(CamelModel):
    """Provisional status returned right after a dispatch."""

    success: bool = False
    message: str
    details: str
    run_url: str
    conclusion: Literal["triggered", "pricing_triggered", "selective_lock_triggered"]
    pricing_only: Optional[bool] = None
    selective_lock: Optional[bool] = None
    nex_id: Optional[str] = None


class TriggerResponse(CamelModel):
    """Acknowledgement that the automation run was requested."""

    success: bool = True
    message: str
    workflow_run_id: Optional[Union[int, str]] = None
    workflow_status: WorkflowStatus
    loan_index: int
    nex_id: Optional[str] = None
    timestamp: str


__all__ = [
    "BatchResultsRequest",
    "CamelModel",
    "PortalCredentials",
    "SelectiveLockRequest",
    "TriggerLoanRequest",
    "TriggerResponse",
    "WorkflowStatus",
]

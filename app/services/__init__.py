"""Service layer exports."""

from .batch_results import BatchResultAggregator, LockBatchReport, PricingBatchReport
from .dispatcher import (
    DispatchEvent,
    DispatchReceipt,
    DispatchRequest,
    LoanDispatcher,
    normalize_selective_lock_record,
)
from .log_fetcher import FetchedLogs, LogDecodeError, LogFetcher, decode_log_payload
from .log_interpreter import LogInterpreter
from .run_locator import RunLocator, parse_timestamp

__all__ = [
    "BatchResultAggregator",
    "DispatchEvent",
    "DispatchReceipt",
    "DispatchRequest",
    "FetchedLogs",
    "LoanDispatcher",
    "LockBatchReport",
    "LogDecodeError",
    "LogFetcher",
    "LogInterpreter",
    "PricingBatchReport",
    "RunLocator",
    "decode_log_payload",
    "normalize_selective_lock_record",
    "parse_timestamp",
]

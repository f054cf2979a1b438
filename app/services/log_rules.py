"""
Ordered pattern rules for reading automation outcomes out of workflow logs.

The browser automation prints free text. A few lines are emitted on purpose
(``LOCK_RESULT: {...}`` / ``PRICING_DATA_OUTPUT: {...}``) and are trusted;
everything else is matched against phrases known to appear in its output.
Each rule exposes ``evaluate(text)`` and returns a ``RuleMatch`` or ``None``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Pattern, Sequence, Tuple, Union

_LINE_PREFIX = re.compile(r"^(?:\d{4}-\d{2}-\d{2}T[\d:.]+Z\s*|\d+\s+)")


@dataclass(frozen=True, slots=True)
class RuleMatch:
    """What a rule recognized in the log text."""

    kind: str
    locked: bool = False
    rule: Optional[str] = None
    message: Optional[str] = None
    details: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None


@dataclass(frozen=True, slots=True)
class MarkerRule:
    """A tagged line carrying inline JSON, e.g. ``LOCK_RESULT: {...}``.

    When the tag appears several times the last parsable payload wins, since
    the automation may retry a step before printing its final result.
    """

    tag: str
    kind: str

    @property
    def pattern(self) -> Pattern[str]:
        return re.compile(re.escape(self.tag) + r":?\s*(\{.*\})\s*$", re.MULTILINE)

    def evaluate(self, text: str) -> Optional[RuleMatch]:
        payload: Optional[Dict[str, Any]] = None
        for match in self.pattern.finditer(text):
            try:
                candidate = json.loads(match.group(1))
            except json.JSONDecodeError:
                continue
            if isinstance(candidate, dict):
                payload = candidate
        if payload is None:
            return None

        status = str(payload.get("lock_status", "")).strip().lower()
        return RuleMatch(
            kind=self.kind,
            locked=status in {"success", "locked"},
            rule=self.tag,
            message=payload.get("error_message") or payload.get("error"),
            payload=payload,
        )


@dataclass(frozen=True, slots=True)
class SuccessRule:
    """A phrase the automation prints only after the lock was submitted."""

    label: str
    pattern: Pattern[str]

    def evaluate(self, text: str) -> Optional[RuleMatch]:
        if not self.pattern.search(text):
            return None
        return RuleMatch(kind="success_pattern", locked=True, rule=self.label)


@dataclass(frozen=True, slots=True)
class FailureRule:
    """A known failure phrase with message/detail templates.

    Templates are ``str.format`` strings filled with the pattern's groups.
    """

    name: str
    pattern: Pattern[str]
    message: str
    details: str

    def evaluate(self, text: str) -> Optional[RuleMatch]:
        match = self.pattern.search(text)
        if not match:
            return None
        groups = [group.strip() for group in match.groups(default="")]
        return RuleMatch(
            kind="failure_pattern",
            rule=self.name,
            message=self.message.format(*groups),
            details=self.details.format(*groups),
        )


@dataclass(frozen=True, slots=True)
class GenericErrorRule:
    """First line carrying a generic failure token, minus DEBUG/INFO chatter."""

    tokens: Tuple[str, ...] = ("FAILED:", "ERROR:", "Could not", "Exception:", "Traceback")
    ignored: Tuple[str, ...] = ("DEBUG", "INFO")

    def evaluate(self, text: str) -> Optional[RuleMatch]:
        for raw_line in text.splitlines():
            if not any(token in raw_line for token in self.tokens):
                continue
            if any(noise in raw_line for noise in self.ignored):
                continue
            message = _LINE_PREFIX.sub("", raw_line.strip())
            message = re.sub(r"^.*?(?:FAILED:|ERROR:)\s*", "", message, count=1).strip()
            if message:
                return RuleMatch(kind="generic_error", rule="generic", message=message)
        return None


LogRule = Union[MarkerRule, SuccessRule, FailureRule, GenericErrorRule]


def first_match(rules: Iterable[LogRule], text: str) -> Optional[RuleMatch]:
    """Evaluate ``rules`` in order and stop at the first one that matches."""
    for rule in rules:
        result = rule.evaluate(text)
        if result is not None:
            return result
    return None


def _literal(phrase: str) -> Pattern[str]:
    return re.compile(re.escape(phrase))


LOCK_MARKER = MarkerRule(tag="LOCK_RESULT", kind="lock_marker")
PRICING_MARKER = MarkerRule(tag="PRICING_DATA_OUTPUT", kind="pricing_marker")

SUCCESS_RULES: Tuple[SuccessRule, ...] = (
    SuccessRule(
        "Submit Lock button clicked successfully",
        _literal("Submit Lock button clicked successfully"),
    ),
    SuccessRule("SUCCESS: Loan processed and locked", _literal("SUCCESS: Loan processed and locked")),
    SuccessRule("Loan lock completed successfully", _literal("Loan lock completed successfully")),
    SuccessRule(
        "SUCCESS: AUTO-PROCESS",
        re.compile(r"SUCCESS: AUTO-PROCESS\b.*\b(?:locked|completed)\b", re.IGNORECASE),
    ),
    SuccessRule("SUCCESS: SELECTIVE-LOCK completed", _literal("SUCCESS: SELECTIVE-LOCK completed")),
)

FAILURE_RULES: Tuple[FailureRule, ...] = (
    FailureRule(
        "prepay_penalty_required",
        re.compile(r"FAILED: Prepay Penalty is required when Occupancy = Investment", re.I),
        "Prepay Penalty required for Investment properties",
        "Investment occupancy loans need a Prepay Penalty value before they can be priced.",
    ),
    FailureRule(
        "invalid_prepay_penalty",
        re.compile(r"ERROR: Invalid Prepay Penalty '([^']+)'", re.I),
        'Invalid Prepay Penalty: "{0}"',
        'LoanNex does not offer a Prepay Penalty option named "{0}".',
    ),
    FailureRule(
        "investor_not_found",
        re.compile(r"FAILED: Could not select investor '([^']+)'", re.I),
        'Investor "{0}" not found in LoanNex',
        'The investor filter has no entry matching "{0}"; check the spelling in the loan data.',
    ),
    FailureRule(
        "filter_application_failed",
        re.compile(r"Failed to apply ([A-Za-z][A-Za-z ]*?) filter", re.I),
        "{0} filter could not be applied",
        "The {0} filter was not accepted by the pricing screen.",
    ),
    FailureRule(
        "rate_filtered_out",
        re.compile(r"Rate ([0-9.]+)% filtered out all available loans", re.I),
        "Interest rate {0}% filtered out all loans",
        "No product is offered at {0}%; try pricing without a target rate.",
    ),
    FailureRule(
        "lock_button_not_found",
        re.compile(r"Could not click Lock button", re.I),
        "No loans available to lock after applying filters",
        "The Lock button never became clickable, so no eligible pricing row was found.",
    ),
    FailureRule(
        "submit_failed",
        re.compile(r"Could not click Submit Lock button", re.I),
        "Lock submission failed",
        "The lock dialog opened but the Submit Lock button could not be clicked.",
    ),
    FailureRule(
        "login_failed",
        re.compile(r"Login failed for (.+?):", re.I),
        "Login failed for user {0}",
        "LoanNex rejected the credentials for {0}.",
    ),
    FailureRule(
        "browser_init_failed",
        re.compile(
            r"(?:Failed to (?:initialize|launch|start) (?:the )?browser|Browser initialization failed)",
            re.I,
        ),
        "Browser could not be started on the automation runner",
        "The headless browser failed to start; the run never reached LoanNex.",
    ),
)

GENERIC_ERROR = GenericErrorRule()

LOCK_RULES: Tuple[LogRule, ...] = (LOCK_MARKER, *SUCCESS_RULES, *FAILURE_RULES, GENERIC_ERROR)
PRICING_RULES: Tuple[LogRule, ...] = (PRICING_MARKER, *FAILURE_RULES, GENERIC_ERROR)


# -- field extraction ------------------------------------------------------

_LOAN_INDEX_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"Processing loan (\d+)", re.I),
    re.compile(r"loan_index[\"']?\s*[:=\s]\s*(\d+)", re.I),
    re.compile(r"\bLoan (\d+):", re.I),
    re.compile(r"Loan #(\d+)", re.I),
    re.compile(r"\bloan (\d+)\b", re.I),
)

_JOB_NAME_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"loan[:\s]*(\d+)", re.I),
    re.compile(r"process[:\s]*(\d+)", re.I),
    re.compile(r"price[:\s]*(\d+)", re.I),
    re.compile(r"\b(\d+)\b"),
)

_BORROWER_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"Set first field value.*?'([^']+)'", re.I),
    re.compile(r"First Name[:\s]+([A-Za-z][A-Za-z'-]*)", re.I),
    re.compile(r"filled.*?first.*?name.*?'([^']+)'", re.I),
    re.compile(r"borrower.*?name[:\s]+([A-Za-z][A-Za-z'-]*)", re.I),
)

# Sample rows and form labels that show up where a name is expected.
_NAME_NOISE = frozenset(
    {"doe", "investment", "unknown", "none", "null", "n/a", "test", "first", "name", "value"}
)

_NEX_ID_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"NexID[:\s#]+([A-Za-z0-9][A-Za-z0-9_-]*)", re.I),
    re.compile(r"nex_?id[\"']?\s*[:=]\s*[\"']?([A-Za-z0-9][A-Za-z0-9_-]*)", re.I),
)

_NEX_ID_NOISE = frozenset({"n", "na", "not", "none", "null", "unknown", "missing"})


def extract_loan_index(text: str) -> Optional[int]:
    for pattern in _LOAN_INDEX_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def extract_loan_index_from_jobs(job_names: Sequence[str]) -> Optional[int]:
    for name in job_names:
        for pattern in _JOB_NAME_PATTERNS:
            match = pattern.search(name)
            if match:
                return int(match.group(1))
    return None


def _plausible_name(candidate: str) -> bool:
    candidate = candidate.strip()
    return (
        len(candidate) > 1
        and candidate[0].isupper()
        and candidate.lower() not in _NAME_NOISE
    )


def extract_borrower_name(text: str) -> Optional[str]:
    for pattern in _BORROWER_PATTERNS:
        for match in pattern.finditer(text):
            candidate = match.group(1).strip()
            if _plausible_name(candidate):
                return candidate
    return None


def extract_nex_id(text: str) -> Optional[str]:
    for pattern in _NEX_ID_PATTERNS:
        for match in pattern.finditer(text):
            candidate = match.group(1)
            if candidate.lower() not in _NEX_ID_NOISE:
                return candidate
    return None


__all__ = [
    "FAILURE_RULES",
    "FailureRule",
    "GENERIC_ERROR",
    "GenericErrorRule",
    "LOCK_MARKER",
    "LOCK_RULES",
    "LogRule",
    "MarkerRule",
    "PRICING_MARKER",
    "PRICING_RULES",
    "RuleMatch",
    "SUCCESS_RULES",
    "SuccessRule",
    "extract_borrower_name",
    "extract_loan_index",
    "extract_loan_index_from_jobs",
    "extract_nex_id",
    "first_match",
]

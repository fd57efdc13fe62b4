# functions/core/status.py
"""
functions.core.status

Execution Status Classifier: indexer execution report -> (outcome category, message).

Contract
--------
- Pure function of its input, deterministic.
- Exhaustive over IndexerStatus. The mapping table is checked against the enum when
  this module is imported, so adding a status without a classification fails at import
  (and therefore in the test suite) instead of defaulting at runtime.
- Raw status strings outside the vocabulary raise UnrecognizedStatus.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from functions.core.errors import UnrecognizedStatus


class IndexerStatus(str, Enum):
    UNKNOWN = "unknown"
    ERROR = "error"
    RUNNING = "running"
    SUCCESS = "success"
    RESET = "reset"
    PARTIALLY_SUCCEEDED = "partiallySucceeded"


class OutcomeCategory(str, Enum):
    INDETERMINATE = "indeterminate"
    FAILED = "failed"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    DEGRADED = "degraded"


TERMINAL_CATEGORIES = frozenset({OutcomeCategory.FAILED, OutcomeCategory.SUCCEEDED, OutcomeCategory.DEGRADED})


@dataclass(frozen=True)
class ExecutionResult:
    """Summary of the latest indexer run (`lastResult` on the service)."""

    status: str
    item_count: int = 0
    failed_item_count: int = 0
    error_message: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None


@dataclass(frozen=True)
class ExecutionReport:
    """Latest polled state of an indexer. Produced fresh on every poll."""

    status: IndexerStatus
    last_result: Optional[ExecutionResult] = None

    def to_dict(self) -> Dict[str, Any]:
        lr = self.last_result
        return {
            "status": self.status.value,
            "last_result": None
            if lr is None
            else {
                "status": lr.status,
                "item_count": lr.item_count,
                "failed_item_count": lr.failed_item_count,
                "error_message": lr.error_message,
                "errors": list(lr.errors),
                "warnings": list(lr.warnings),
                "start_time": lr.start_time.isoformat() if lr.start_time else None,
                "end_time": lr.end_time.isoformat() if lr.end_time else None,
            },
        }


_CLASSIFICATION: Dict[IndexerStatus, Tuple[OutcomeCategory, str]] = {
    IndexerStatus.UNKNOWN: (OutcomeCategory.INDETERMINATE, "status not yet available"),
    IndexerStatus.ERROR: (OutcomeCategory.FAILED, "execution failed; inspect lastResult for details"),
    IndexerStatus.RUNNING: (OutcomeCategory.IN_PROGRESS, "execution in progress"),
    IndexerStatus.SUCCESS: (OutcomeCategory.SUCCEEDED, "execution completed with no failures"),
    IndexerStatus.RESET: (OutcomeCategory.IN_PROGRESS, "execution was reset and will re-run"),
    IndexerStatus.PARTIALLY_SUCCEEDED: (
        OutcomeCategory.DEGRADED,
        "execution completed; see lastResult.failedItemCount",
    ),
}

_unmapped = set(IndexerStatus) - set(_CLASSIFICATION)
if _unmapped:
    raise RuntimeError(f"IndexerStatus values without a classification: {sorted(s.value for s in _unmapped)}")


def parse_indexer_status(raw: Any) -> IndexerStatus:
    """Parse a raw status (enum or string, case-insensitive)."""
    if isinstance(raw, IndexerStatus):
        return raw
    text = str(raw or "").strip()
    for s in IndexerStatus:
        if s.value.lower() == text.lower():
            return s
    raise UnrecognizedStatus(f"Unrecognized indexer status: {raw!r}")


def classify(report: ExecutionReport) -> Tuple[OutcomeCategory, str]:
    """Map an execution report to (category, action hint)."""
    status = parse_indexer_status(report.status)
    return _CLASSIFICATION[status]


def is_terminal(category: OutcomeCategory) -> bool:
    return category in TERMINAL_CATEGORIES


__all__ = [
    "IndexerStatus",
    "OutcomeCategory",
    "ExecutionResult",
    "ExecutionReport",
    "TERMINAL_CATEGORIES",
    "parse_indexer_status",
    "classify",
    "is_terminal",
]

# functions/core/monitor.py
"""
functions.core.monitor

Status poller: fetch the indexer's execution report until its classification is
terminal (failed / succeeded / degraded) or the poll budget runs out.

The poller never sleeps after the last allowed poll, and `sleep` is injectable so
tests run instantly.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from functions.core.status import ExecutionReport, OutcomeCategory, classify, is_terminal
from functions.core.synchronizer import CancellationToken, SearchAdminBackend
from functions.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class PollResult:
    indexer_name: str
    report: ExecutionReport
    category: OutcomeCategory
    message: str
    polls: int
    settled: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "indexer_name": self.indexer_name,
            "category": self.category.value,
            "message": self.message,
            "polls": self.polls,
            "settled": self.settled,
            "report": self.report.to_dict(),
        }


def poll_execution(
    backend: SearchAdminBackend,
    indexer_name: str,
    *,
    interval_sec: float = 5.0,
    max_polls: int = 1,
    cancel_token: Optional[CancellationToken] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> PollResult:
    """
    Poll + classify.

    Args:
      max_polls: 1 means a single status read (no waiting).

    Raises:
      ValueError: on a non-positive max_polls or negative interval.
      SyncCancelled: when cancel_token fires between polls.
      UnrecognizedStatus / backend errors: unchanged.
    """
    if max_polls <= 0:
        raise ValueError("max_polls must be > 0")
    if interval_sec < 0:
        raise ValueError("interval_sec must be >= 0")

    polls = 0
    while True:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled(f"polling indexer {indexer_name!r}")

        report = backend.get_execution_report(indexer_name)
        polls += 1
        category, message = classify(report)
        logger.info("Indexer %s: %s (%s) [poll %d/%d]", indexer_name, category.value, message, polls, max_polls)

        if is_terminal(category) or polls >= max_polls:
            return PollResult(
                indexer_name=indexer_name,
                report=report,
                category=category,
                message=message,
                polls=polls,
                settled=is_terminal(category),
            )
        sleep(interval_sec)


__all__ = ["PollResult", "poll_execution"]

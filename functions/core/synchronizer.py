# functions/core/synchronizer.py
"""
functions.core.synchronizer

Resource Synchronizer: make the service's named resource match a desired descriptor.

    synchronize(d):
      get(kind, name)
        NotFound      -> create_or_update(d)  -> Created
        equal         -> no write             -> Unchanged
        different     -> create_or_update(d)  -> Updated   (atomic replace, never delete+create)

Contract
--------
- No retries here. Retry/backoff/timeout belong to the transport (Azure SDK pipeline).
- NotFound is consumed internally; every other error propagates unchanged.
- No local state beyond the lifetime of a call.

Sequences
---------
`synchronize_all()` applies descriptors one at a time in canonical kind order and stops
at the first failure, because the indexer references the other three by name.
Cancellation is checked before every remote call; nothing is rolled back, and a re-run
completes the remainder idempotently.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from functions.core.errors import NotFound, SyncCancelled
from functions.core.resources import (
    SYNC_ORDER,
    ResourceDescriptor,
    ResourceKind,
    payloads_equivalent,
    sort_for_sync,
)
from functions.core.status import ExecutionReport
from functions.utils.logging import get_logger

logger = get_logger(__name__)


# -------------------------------------------------------------------------------------------------
# Remote boundary
# -------------------------------------------------------------------------------------------------
class SearchAdminBackend(Protocol):
    """Administrative surface of the search service (implemented in functions.io.search_admin)."""

    def get(self, kind: ResourceKind, name: str) -> Dict[str, Any]:
        """Return the remote payload. Raises NotFound when absent."""
        ...

    def create_or_update(self, descriptor: ResourceDescriptor) -> Dict[str, Any]:
        ...

    def delete(self, kind: ResourceKind, name: str) -> None:
        """Raises NotFound when absent."""
        ...

    def get_execution_report(self, indexer_name: str) -> ExecutionReport:
        ...


# -------------------------------------------------------------------------------------------------
# Cancellation
# -------------------------------------------------------------------------------------------------
class CancellationToken:
    """
    Cooperative cancellation, optionally with a time budget.

    Checked between remote calls; an in-flight call is never interrupted.
    """

    def __init__(self, *, deadline: Optional[float] = None, clock=time.monotonic) -> None:
        self._cancelled = False
        self._deadline = deadline
        self._clock = clock

    @classmethod
    def with_budget(cls, seconds: float, *, clock=time.monotonic) -> "CancellationToken":
        if seconds <= 0:
            raise ValueError("time budget must be > 0 seconds")
        return cls(deadline=clock() + float(seconds), clock=clock)

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        if self._cancelled:
            return True
        return self._deadline is not None and self._clock() >= self._deadline

    def raise_if_cancelled(self, where: str = "", *, completed: Optional[List[Any]] = None) -> None:
        if self.cancelled:
            msg = "Cancelled" + (f" before {where}" if where else "")
            raise SyncCancelled(msg, completed=completed)


# -------------------------------------------------------------------------------------------------
# Results
# -------------------------------------------------------------------------------------------------
class SyncOutcome(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DELETED = "deleted"
    ABSENT = "absent"


@dataclass(frozen=True)
class SyncResult:
    kind: ResourceKind
    name: str
    outcome: SyncOutcome
    fingerprint: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "kind": self.kind.value,
            "name": self.name,
            "outcome": self.outcome.value,
            "fingerprint": self.fingerprint,
        }


# -------------------------------------------------------------------------------------------------
# Synchronizer
# -------------------------------------------------------------------------------------------------
class ResourceSynchronizer:
    """Idempotent create / replace / leave-untouched of named remote resources."""

    def __init__(self, backend: SearchAdminBackend) -> None:
        self.backend = backend

    def synchronize(
        self,
        descriptor: ResourceDescriptor,
        *,
        force: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SyncResult:
        """
        Ensure the service holds exactly `descriptor` under its name.

        Args:
          force: write even when the remote already compares equal (e.g. to rotate a
            write-only secret the service never echoes back).

        Raises:
          ValidationRejected / NotAuthorized / RemoteUnavailable: from the backend, unchanged.
          SyncCancelled: when `cancel_token` fires between remote calls.
        """
        kind, name = descriptor.kind, descriptor.name
        where = f"{kind.value} {name!r}"

        if cancel_token is not None:
            cancel_token.raise_if_cancelled(where)

        try:
            remote: Optional[Dict[str, Any]] = self.backend.get(kind, name)
        except NotFound:
            remote = None

        if remote is not None and not force and payloads_equivalent(kind, descriptor.wire_payload(), remote):
            logger.debug("%s unchanged", where)
            return SyncResult(kind, name, SyncOutcome.UNCHANGED, descriptor.fingerprint)

        if cancel_token is not None:
            cancel_token.raise_if_cancelled(f"writing {where}")

        self.backend.create_or_update(descriptor)
        outcome = SyncOutcome.CREATED if remote is None else SyncOutcome.UPDATED
        logger.debug("%s %s", where, outcome.value)
        return SyncResult(kind, name, outcome, descriptor.fingerprint)

    def synchronize_all(
        self,
        descriptors: List[ResourceDescriptor],
        *,
        force: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[SyncResult]:
        """
        Synchronize descriptors sequentially in canonical order; stop at the first error.

        On cancellation, SyncCancelled.completed holds the results finished so far.
        """
        results: List[SyncResult] = []
        for d in sort_for_sync(list(descriptors)):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(f"{d.kind.value} {d.name!r}", completed=results)
            try:
                res = self.synchronize(d, force=force, cancel_token=cancel_token)
            except SyncCancelled as e:
                raise SyncCancelled(e.message, completed=results) from e
            results.append(res)
        return results

    def teardown(
        self,
        descriptors: List[ResourceDescriptor],
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> List[SyncResult]:
        """
        Delete resources in reverse canonical order (Indexer first, DataSource last).

        Already-absent resources are reported ABSENT; other errors propagate and abort.
        """
        rank = {k: i for i, k in enumerate(SYNC_ORDER)}
        ordered = sorted(descriptors, key=lambda d: rank[d.kind], reverse=True)

        results: List[SyncResult] = []
        for d in ordered:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled(f"deleting {d.kind.value} {d.name!r}", completed=results)
            try:
                self.backend.delete(d.kind, d.name)
                outcome = SyncOutcome.DELETED
            except NotFound:
                outcome = SyncOutcome.ABSENT
            results.append(SyncResult(d.kind, d.name, outcome, d.fingerprint))
        return results


__all__ = [
    "SearchAdminBackend",
    "CancellationToken",
    "SyncOutcome",
    "SyncResult",
    "ResourceSynchronizer",
]

# functions/core/errors.py
"""
Error taxonomy for search administration calls.

Intent
- One small exception hierarchy shared by the synchronizer, the status classifier,
  the Azure adapter and the entrypoints.
- Every error keeps the remote service's diagnostic message (and HTTP status when known)
  so callers can log it verbatim.

Propagation policy
- NotFound is an internal signal of `synchronize()` (it selects the create path).
- Everything else propagates unchanged to the caller; nothing is swallowed.
"""

from __future__ import annotations

from typing import Any, List, Optional


class SearchAdminError(Exception):
    """Base class for all search administration errors."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationRejected(SearchAdminError):
    """The payload (or the name) was rejected as malformed. Not retryable."""


class InvalidResourceName(ValidationRejected):
    """Local name check failed before any network call."""


class PipelineDefinitionError(ValidationRejected):
    """The declarative pipeline definition is inconsistent (step order, field mappings, keys)."""

    def __init__(self, problems: List[str]) -> None:
        super().__init__("Invalid pipeline definition: " + "; ".join(problems))
        self.problems = list(problems)


class NotAuthorized(SearchAdminError):
    """Credentials missing, invalid, or lacking admin rights."""


class RemoteUnavailable(SearchAdminError):
    """Transport or service-side failure. The caller may retry the whole call."""


class NotFound(SearchAdminError):
    """The named resource does not exist on the service."""


class UnrecognizedStatus(SearchAdminError):
    """An execution status outside the known vocabulary (contract error)."""


class SyncCancelled(SearchAdminError):
    """A synchronization sequence or poll loop was cancelled part-way."""

    def __init__(self, message: str, *, completed: Optional[List[Any]] = None) -> None:
        super().__init__(message)
        self.completed = list(completed or [])


__all__ = [
    "SearchAdminError",
    "ValidationRejected",
    "InvalidResourceName",
    "PipelineDefinitionError",
    "NotAuthorized",
    "RemoteUnavailable",
    "NotFound",
    "UnrecognizedStatus",
    "SyncCancelled",
]

# functions/io/search_admin.py
"""
Azure AI Search administrative backend (azure-search-documents)

Intent
- Implement the SearchAdminBackend protocol (functions.core.synchronizer) over the SDK:
  - get / create_or_update / delete for data sources, skillsets, indexes, indexers
  - get_execution_report for indexer status
- Keep payloads in the service's JSON wire shape at this boundary:
  wire dict -> generated model (`deserialize`) -> public model (`_from_generated`), and back
  via `_to_generated().serialize()`, the same route the client takes on the wire.

Error translation (azure.core.exceptions -> functions.core.errors)
- ResourceNotFoundError                      -> NotFound
- SerializationError, DeserializationError   -> ValidationRejected (payload does not fit the model)
- ClientAuthenticationError, HTTP 401/403    -> NotAuthorized
- HTTP 400/409/412/422                       -> ValidationRejected
- other HttpResponseError (429, 5xx), other AzureError (connection, timeout)
                                             -> RemoteUnavailable
The service's diagnostic message is kept verbatim.

Status translation (SearchIndexerStatus -> ExecutionReport)
- overall "unknown" -> UNKNOWN, "error" -> ERROR
- overall "running":
    no last result / last result "inProgress"     -> RUNNING
    last result "success" with failed items > 0   -> PARTIALLY_SUCCEEDED
    last result "success"                         -> SUCCESS
    last result "reset"                           -> RESET
    last result "transientFailure"                -> ERROR
- anything else -> UnrecognizedStatus
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional, Tuple

from azure.core.exceptions import (
    AzureError,
    ClientAuthenticationError,
    DeserializationError,
    HttpResponseError,
    ResourceNotFoundError,
    SerializationError,
)
from azure.search.documents.indexes._generated import models as _wire_models
from azure.search.documents.indexes.models import (
    SearchIndex,
    SearchIndexer,
    SearchIndexerDataSourceConnection,
    SearchIndexerSkillset,
)

from functions.core.errors import (
    NotAuthorized,
    NotFound,
    RemoteUnavailable,
    UnrecognizedStatus,
    ValidationRejected,
)
from functions.core.resources import ResourceDescriptor, ResourceKind
from functions.core.status import ExecutionReport, ExecutionResult, IndexerStatus
from functions.search.client import build_search_clients
from functions.utils.logging import get_logger

logger = get_logger(__name__)

_VALIDATION_STATUS_CODES = {400, 409, 412, 422}
_AUTH_STATUS_CODES = {401, 403}

# Model (de)serialization errors are ValueErrors, not AzureErrors.
_SDK_ERRORS = (AzureError, SerializationError, DeserializationError)


# -------------------------------------------------------------------------------------------------
# Error translation
# -------------------------------------------------------------------------------------------------
def _diagnostic(exc: Exception) -> str:
    msg = getattr(exc, "message", None) or str(exc)
    return str(msg).strip()


def translate_azure_error(exc: Exception, *, where: str) -> Exception:
    """Map an azure-core exception onto the repository error taxonomy."""
    msg = f"{where}: {_diagnostic(exc)}"

    if isinstance(exc, ResourceNotFoundError):
        return NotFound(msg, status_code=404)
    if isinstance(exc, (SerializationError, DeserializationError)):
        return ValidationRejected(msg)
    if isinstance(exc, ClientAuthenticationError):
        return NotAuthorized(msg, status_code=getattr(exc, "status_code", None))
    if isinstance(exc, HttpResponseError):
        code = exc.status_code
        if code in _AUTH_STATUS_CODES:
            return NotAuthorized(msg, status_code=code)
        if code in _VALIDATION_STATUS_CODES:
            return ValidationRejected(msg, status_code=code)
        return RemoteUnavailable(msg, status_code=code)
    return RemoteUnavailable(msg)


@contextmanager
def _translated(where: str) -> Iterator[None]:
    try:
        yield
    except _SDK_ERRORS as e:
        raise translate_azure_error(e, where=where) from e


# -------------------------------------------------------------------------------------------------
# Wire conversion
# -------------------------------------------------------------------------------------------------
# Public models wrap the generated (REST) models; the client converts through them on
# every request and response. Converting the same way keeps skills such as the V3
# entity recognizer intact in both directions.
_WIRE_MODELS: Dict[ResourceKind, Tuple[Any, Any]] = {
    ResourceKind.DATA_SOURCE: (_wire_models.SearchIndexerDataSource, SearchIndexerDataSourceConnection),
    ResourceKind.ENRICHMENT_PIPELINE: (_wire_models.SearchIndexerSkillset, SearchIndexerSkillset),
    ResourceKind.INDEX_SCHEMA: (_wire_models.SearchIndex, SearchIndex),
    ResourceKind.INDEXER: (_wire_models.SearchIndexer, SearchIndexer),
}


def model_from_wire(kind: ResourceKind, payload: Dict[str, Any]) -> Any:
    """Wire dict -> public SDK model accepted by the client's create_or_update_* calls."""
    generated_cls, public_cls = _WIRE_MODELS[kind]
    generated = generated_cls.deserialize(payload)
    from_generated = getattr(public_cls, "_from_generated", None)
    return from_generated(generated) if from_generated is not None else generated


def model_to_wire(model: Any) -> Dict[str, Any]:
    """SDK model (public or generated) -> wire dict."""
    to_generated = getattr(model, "_to_generated", None)
    generated = to_generated() if to_generated is not None else model
    return dict(generated.serialize(keep_readonly=True))


# -------------------------------------------------------------------------------------------------
# Status translation
# -------------------------------------------------------------------------------------------------
def _execution_result_from_sdk(last: Any) -> ExecutionResult:
    errors = [str(getattr(e, "error_message", e)) for e in (getattr(last, "errors", None) or [])]
    warnings = [str(getattr(w, "message", w)) for w in (getattr(last, "warnings", None) or [])]
    return ExecutionResult(
        status=str(getattr(last, "status", "") or ""),
        item_count=int(getattr(last, "item_count", 0) or 0),
        failed_item_count=int(getattr(last, "failed_item_count", 0) or 0),
        error_message=getattr(last, "error_message", None),
        errors=errors,
        warnings=warnings,
        start_time=getattr(last, "start_time", None),
        end_time=getattr(last, "end_time", None),
    )


def report_from_sdk_status(sdk_status: Any) -> ExecutionReport:
    """Derive the six-value execution report from a SearchIndexerStatus."""
    overall = str(getattr(sdk_status, "status", "") or "").strip().lower()
    last = getattr(sdk_status, "last_result", None)
    last_result = _execution_result_from_sdk(last) if last is not None else None

    if overall == "unknown":
        return ExecutionReport(IndexerStatus.UNKNOWN, last_result)
    if overall == "error":
        return ExecutionReport(IndexerStatus.ERROR, last_result)
    if overall != "running":
        raise UnrecognizedStatus(f"Unrecognized indexer status: {overall!r}")

    if last_result is None:
        return ExecutionReport(IndexerStatus.RUNNING, None)

    run_status = last_result.status.strip().lower()
    if run_status == "inprogress":
        status = IndexerStatus.RUNNING
    elif run_status == "success":
        status = IndexerStatus.PARTIALLY_SUCCEEDED if last_result.failed_item_count > 0 else IndexerStatus.SUCCESS
    elif run_status == "reset":
        status = IndexerStatus.RESET
    elif run_status == "transientfailure":
        status = IndexerStatus.ERROR
    else:
        raise UnrecognizedStatus(f"Unrecognized indexer execution status: {last_result.status!r}")
    return ExecutionReport(status, last_result)


# -------------------------------------------------------------------------------------------------
# Backend
# -------------------------------------------------------------------------------------------------
class AzureSearchBackend:
    """SearchAdminBackend over SearchIndexClient + SearchIndexerClient."""

    def __init__(self, *, index_client: Any, indexer_client: Any) -> None:
        self.index_client = index_client
        self.indexer_client = indexer_client

    def _ops(self, kind: ResourceKind) -> Tuple[Callable, Callable, Callable]:
        """(get, create_or_update, delete) for a kind."""
        ic, xc = self.index_client, self.indexer_client
        if kind is ResourceKind.DATA_SOURCE:
            return (
                xc.get_data_source_connection,
                xc.create_or_update_data_source_connection,
                xc.delete_data_source_connection,
            )
        if kind is ResourceKind.ENRICHMENT_PIPELINE:
            return xc.get_skillset, xc.create_or_update_skillset, xc.delete_skillset
        if kind is ResourceKind.INDEX_SCHEMA:
            return ic.get_index, ic.create_or_update_index, ic.delete_index
        if kind is ResourceKind.INDEXER:
            return xc.get_indexer, xc.create_or_update_indexer, xc.delete_indexer
        raise ValueError(f"Unsupported resource kind: {kind!r}")

    def get(self, kind: ResourceKind, name: str) -> Dict[str, Any]:
        get, _, _ = self._ops(kind)
        with _translated(f"get {kind.value} {name!r}"):
            return model_to_wire(get(name))

    def create_or_update(self, descriptor: ResourceDescriptor) -> Dict[str, Any]:
        _, upsert, _ = self._ops(descriptor.kind)
        where = f"create_or_update {descriptor.kind.value} {descriptor.name!r}"
        with _translated(where):
            model = model_from_wire(descriptor.kind, descriptor.wire_payload())
            saved = model_to_wire(upsert(model))
        logger.debug("%s ok", where)
        return saved

    def delete(self, kind: ResourceKind, name: str) -> None:
        _, _, delete = self._ops(kind)
        with _translated(f"delete {kind.value} {name!r}"):
            delete(name)

    def get_execution_report(self, indexer_name: str) -> ExecutionReport:
        with _translated(f"get_indexer_status {indexer_name!r}"):
            sdk_status = self.indexer_client.get_indexer_status(indexer_name)
        return report_from_sdk_status(sdk_status)


def build_search_backend(credentials_config: Any, *, clients: Optional[Dict[str, Any]] = None) -> AzureSearchBackend:
    """
    Stable factory so tests can monkeypatch one symbol.

    Does not make network calls.
    """
    c = clients if clients is not None else build_search_clients(credentials_config)
    return AzureSearchBackend(index_client=c["index_client"], indexer_client=c["indexer_client"])


__all__ = [
    "AzureSearchBackend",
    "build_search_backend",
    "report_from_sdk_status",
    "translate_azure_error",
    "model_from_wire",
    "model_to_wire",
]

# tests/conftest.py
"""
Shared fakes for the search administration tests.

FakeSearchBackend mimics the service closely enough for synchronization tests:
- stores exactly what was written (full replace on create_or_update)
- never echoes data source secrets back (connectionString -> None)
- adds bookkeeping (`@odata.etag`) and a server-side skill default on reads
- rejects an indexer whose data source / skillset / index does not exist (HTTP 400)
- counts reads and writes
"""
from __future__ import annotations

import copy
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from functions.core.errors import NotFound, ValidationRejected
from functions.core.resources import ResourceDescriptor, ResourceKind
from functions.core.status import ExecutionReport, IndexerStatus


class FakeSearchBackend:
    def __init__(self, reports: Optional[List[ExecutionReport]] = None) -> None:
        self.store: Dict[Tuple[ResourceKind, str], Dict[str, Any]] = {}
        self.writes: List[Tuple[ResourceKind, str]] = []
        self.deletes: List[Tuple[ResourceKind, str]] = []
        self.gets: List[Tuple[ResourceKind, str]] = []
        self.reports: List[ExecutionReport] = list(reports or [ExecutionReport(IndexerStatus.RUNNING)])
        self.report_calls = 0
        self.fail_on: Dict[Tuple[ResourceKind, str], Exception] = {}
        self.after_write: Optional[Callable[[ResourceDescriptor], None]] = None

    # --- SearchAdminBackend ---
    def get(self, kind: ResourceKind, name: str) -> Dict[str, Any]:
        self.gets.append((kind, name))
        key = (kind, name)
        if key not in self.store:
            raise NotFound(f"{kind.value} {name!r} not found", status_code=404)
        payload = copy.deepcopy(self.store[key])
        payload["@odata.etag"] = '"0x8D000000000001"'
        if kind is ResourceKind.DATA_SOURCE and "credentials" in payload:
            payload["credentials"] = {"connectionString": None}
        if kind is ResourceKind.ENRICHMENT_PIPELINE:
            for skill in payload.get("skills", []):
                if skill.get("@odata.type") == "#Microsoft.Skills.Vision.OcrSkill":
                    skill.setdefault("lineEnding", "Space")
        return payload

    def create_or_update(self, descriptor: ResourceDescriptor) -> Dict[str, Any]:
        key = (descriptor.kind, descriptor.name)
        if key in self.fail_on:
            raise self.fail_on[key]

        payload = descriptor.wire_payload()
        if descriptor.kind is ResourceKind.INDEXER:
            refs = [
                (ResourceKind.DATA_SOURCE, payload.get("dataSourceName")),
                (ResourceKind.INDEX_SCHEMA, payload.get("targetIndexName")),
            ]
            if payload.get("skillsetName"):
                refs.append((ResourceKind.ENRICHMENT_PIPELINE, payload["skillsetName"]))
            for ref_kind, ref_name in refs:
                if (ref_kind, ref_name) not in self.store:
                    raise ValidationRejected(
                        f"{ref_kind.value} '{ref_name}' referenced by indexer '{descriptor.name}' does not exist",
                        status_code=400,
                    )

        self.store[key] = copy.deepcopy(payload)
        self.writes.append(key)
        if self.after_write is not None:
            self.after_write(descriptor)
        return copy.deepcopy(payload)

    def delete(self, kind: ResourceKind, name: str) -> None:
        key = (kind, name)
        if key in self.fail_on:
            raise self.fail_on[key]
        if key not in self.store:
            raise NotFound(f"{kind.value} {name!r} not found", status_code=404)
        del self.store[key]
        self.deletes.append(key)

    def get_execution_report(self, indexer_name: str) -> ExecutionReport:
        if (ResourceKind.INDEXER, indexer_name) not in self.store:
            raise NotFound(f"Indexer {indexer_name!r} not found", status_code=404)
        self.report_calls += 1
        if len(self.reports) > 1:
            return self.reports.pop(0)
        return self.reports[0]


@pytest.fixture
def fake_backend() -> FakeSearchBackend:
    return FakeSearchBackend()


@pytest.fixture
def search_env(monkeypatch):
    monkeypatch.setenv("AZURE_SEARCH_ENDPOINT", "https://demo-search.search.windows.net")
    monkeypatch.setenv("AZURE_SEARCH_ADMIN_KEY", "test-admin-key")
    monkeypatch.setenv("AZURE_BLOB_CONNECTION_STRING", "DefaultEndpointsProtocol=https;AccountName=demo;AccountKey=abc")


@pytest.fixture
def backend_factory():
    """Build a FakeSearchBackend with a scripted sequence of execution reports."""
    return FakeSearchBackend

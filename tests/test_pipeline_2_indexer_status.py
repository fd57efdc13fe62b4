from __future__ import annotations

from pathlib import Path

import pytest

import functions.online.pipeline_2_indexer_status as p2
from functions.core.errors import NotAuthorized, NotFound, RemoteUnavailable
from functions.core.resources import ResourceKind
from functions.core.status import ExecutionReport, IndexerStatus
from functions.utils.config import load_parameters

CONFIGS = Path(__file__).resolve().parents[1] / "configs"


@pytest.fixture
def params():
    return load_parameters(CONFIGS / "parameters.yaml")


def _backend_with_indexer(backend_factory, reports, name="demoindexer"):
    backend = backend_factory(reports=reports)
    backend.store[(ResourceKind.INDEXER, name)] = {"name": name}
    return backend


def test_single_read_by_default(params, backend_factory):
    backend = _backend_with_indexer(backend_factory, [ExecutionReport(IndexerStatus.RESET)])
    out = p2.run_pipeline_2_indexer_status(params=params, backend=backend)

    assert out["indexer_name"] == "demoindexer"
    assert out["category"] == "in_progress"
    assert out["message"] == "execution was reset and will re-run"
    assert out["settled"] is False


def test_wait_polls_until_failed(params, backend_factory):
    backend = _backend_with_indexer(
        backend_factory,
        [ExecutionReport(IndexerStatus.RUNNING), ExecutionReport(IndexerStatus.ERROR)],
    )
    out = p2.run_pipeline_2_indexer_status(params=params, backend=backend, wait=True, sleep=lambda _: None)

    assert out["category"] == "failed"
    assert out["polls"] == 2


def test_explicit_indexer_name(params, backend_factory):
    backend = _backend_with_indexer(backend_factory, [ExecutionReport(IndexerStatus.SUCCESS)], name="other")
    assert p2.run_pipeline_2_indexer_status(params=params, backend=backend, indexer_name="other")["settled"] is True

    with pytest.raises(NotFound):
        p2.run_pipeline_2_indexer_status(params=params, backend=backend)


@pytest.mark.parametrize(
    "category,settled,code",
    [("succeeded", True, 0), ("degraded", True, 0), ("failed", True, 1), ("in_progress", False, 2)],
)
def test_main_exit_codes(monkeypatch, category, settled, code):
    monkeypatch.setattr(
        p2,
        "run_pipeline_2_indexer_status",
        lambda **_k: {"indexer_name": "demoindexer", "category": category, "message": "m", "settled": settled},
    )
    assert p2.main(parameters_path=str(CONFIGS / "parameters.yaml")) == code


@pytest.mark.parametrize(
    "exc",
    [RemoteUnavailable("service busy", status_code=503), NotAuthorized("invalid api-key", status_code=403)],
)
def test_main_logs_and_returns_1_when_status_unreadable(monkeypatch, caplog, exc):
    def _fail(**_kwargs):
        raise exc

    monkeypatch.setattr(p2, "run_pipeline_2_indexer_status", _fail)

    assert p2.main(parameters_path=str(CONFIGS / "parameters.yaml")) == 1
    assert any(exc.message in r.getMessage() for r in caplog.records if r.levelname == "ERROR")

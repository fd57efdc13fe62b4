from __future__ import annotations

import pytest

from functions.core.errors import UnrecognizedStatus
from functions.core.status import (
    ExecutionReport,
    ExecutionResult,
    IndexerStatus,
    OutcomeCategory,
    classify,
    is_terminal,
    parse_indexer_status,
)


def test_classify_success():
    assert classify(ExecutionReport(IndexerStatus.SUCCESS)) == (
        OutcomeCategory.SUCCEEDED,
        "execution completed with no failures",
    )


def test_classify_partially_succeeded():
    report = ExecutionReport(
        IndexerStatus.PARTIALLY_SUCCEEDED,
        ExecutionResult(status="success", item_count=10, failed_item_count=3),
    )
    assert classify(report) == (
        OutcomeCategory.DEGRADED,
        "execution completed; see lastResult.failedItemCount",
    )


@pytest.mark.parametrize(
    "status,category",
    [
        (IndexerStatus.UNKNOWN, OutcomeCategory.INDETERMINATE),
        (IndexerStatus.ERROR, OutcomeCategory.FAILED),
        (IndexerStatus.RUNNING, OutcomeCategory.IN_PROGRESS),
        (IndexerStatus.SUCCESS, OutcomeCategory.SUCCEEDED),
        (IndexerStatus.RESET, OutcomeCategory.IN_PROGRESS),
        (IndexerStatus.PARTIALLY_SUCCEEDED, OutcomeCategory.DEGRADED),
    ],
)
def test_classify_table(status, category):
    got, message = classify(ExecutionReport(status))
    assert got == category
    assert message


def test_every_status_is_classified_and_only_unknown_is_indeterminate():
    for status in IndexerStatus:
        category, message = classify(ExecutionReport(status))
        assert isinstance(category, OutcomeCategory)
        assert message
        if status is IndexerStatus.UNKNOWN:
            assert category is OutcomeCategory.INDETERMINATE
        else:
            assert category is not OutcomeCategory.INDETERMINATE
    assert len(list(IndexerStatus)) == 6


def test_classify_is_deterministic():
    r = ExecutionReport(IndexerStatus.RESET)
    assert classify(r) == classify(r)


@pytest.mark.parametrize("raw,expected", [("running", IndexerStatus.RUNNING), ("PartiallySucceeded", IndexerStatus.PARTIALLY_SUCCEEDED), (" Error ", IndexerStatus.ERROR)])
def test_parse_indexer_status(raw, expected):
    assert parse_indexer_status(raw) is expected


@pytest.mark.parametrize("raw", ["", None, "paused", "transientFailure"])
def test_unrecognized_status_fails_loudly(raw):
    with pytest.raises(UnrecognizedStatus):
        parse_indexer_status(raw)


def test_classify_rejects_raw_unknown_value():
    with pytest.raises(UnrecognizedStatus):
        classify(ExecutionReport("paused"))  # type: ignore[arg-type]


def test_terminal_categories():
    assert is_terminal(OutcomeCategory.SUCCEEDED)
    assert is_terminal(OutcomeCategory.FAILED)
    assert is_terminal(OutcomeCategory.DEGRADED)
    assert not is_terminal(OutcomeCategory.IN_PROGRESS)
    assert not is_terminal(OutcomeCategory.INDETERMINATE)


def test_report_to_dict():
    report = ExecutionReport(
        IndexerStatus.ERROR,
        ExecutionResult(status="transientFailure", error_message="boom", errors=["e1"]),
    )
    out = report.to_dict()
    assert out["status"] == "error"
    assert out["last_result"]["error_message"] == "boom"
    assert out["last_result"]["errors"] == ["e1"]
    assert ExecutionReport(IndexerStatus.RUNNING).to_dict() == {"status": "running", "last_result": None}

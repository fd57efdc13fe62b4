from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from functions.utils.config import (
    load_credentials,
    load_parameters,
    read_secret_env,
)

CONFIGS = Path(__file__).resolve().parents[1] / "configs"

_MINIMAL_SEARCH = """
search:
  index:
    name: docs
    fields:
      - name: id
        key: true
  indexer:
    name: docs-indexer
"""


def _write(tmp_path: Path, name: str, text: str) -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_shipped_configs_load():
    params = load_parameters(CONFIGS / "parameters.yaml")
    creds = load_credentials(CONFIGS / "credentials.yaml")

    assert params.search.index.name == "demoindex"
    assert len(params.search.skillset.steps) == 6
    assert params.monitor.max_polls > 0
    assert creds.azure_search.endpoint_env == "AZURE_SEARCH_ENDPOINT"


def test_defaults_applied(tmp_path):
    params = load_parameters(_write(tmp_path, "p.yaml", _MINIMAL_SEARCH))
    assert params.run.log_level == "INFO"
    assert params.monitor.wait is False
    assert params.monitor.time_budget_sec is None
    assert params.search.data_source.name == "demodata"


def test_log_level_normalized(tmp_path):
    text = "run:\n  log_level: debug\n" + _MINIMAL_SEARCH
    assert load_parameters(_write(tmp_path, "p.yaml", text)).run.log_level == "DEBUG"


def test_nbsp_is_normalized_before_parse(tmp_path):
    text = "run:\n\u00a0\u00a0name: demo\n" + _MINIMAL_SEARCH
    assert load_parameters(_write(tmp_path, "p.yaml", text)).run.name == "demo"


@pytest.mark.parametrize(
    "extra",
    [
        "monitor:\n  max_polls: 0\n",
        "monitor:\n  poll_interval_sec: -1\n",
        "monitor:\n  time_budget_sec: 0\n",
        "run:\n  log_level: LOUD\n",
    ],
)
def test_invalid_parameters_rejected(tmp_path, extra):
    with pytest.raises(ValidationError):
        load_parameters(_write(tmp_path, "p.yaml", extra + _MINIMAL_SEARCH))


def test_search_section_required(tmp_path):
    with pytest.raises(ValidationError):
        load_parameters(_write(tmp_path, "p.yaml", "run:\n  name: x\n"))


def test_missing_file_and_non_mapping_root(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_parameters(tmp_path / "missing.yaml")
    with pytest.raises(ValueError):
        load_parameters(_write(tmp_path, "p.yaml", "- a\n- b\n"))


def test_credentials_request_validation(tmp_path):
    with pytest.raises(ValidationError):
        load_credentials(_write(tmp_path, "c.yaml", "azure_search:\n  request:\n    timeout_seconds: 0\n"))


def test_read_secret_env(monkeypatch):
    monkeypatch.setenv("SOME_SECRET", " value ")
    assert read_secret_env("SOME_SECRET", purpose="test") == "value"
    monkeypatch.delenv("SOME_SECRET")
    with pytest.raises(EnvironmentError, match="SOME_SECRET"):
        read_secret_env("SOME_SECRET", purpose="test")

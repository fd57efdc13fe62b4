from __future__ import annotations

import logging

import pytest

from functions.utils.hashing import sha1_json, sha1_text
from functions.utils.logging import configure_logging, configure_logging_from_params
from functions.utils.config import RunConfig


@pytest.fixture
def clean_root_logger():
    root = logging.getLogger()
    before_handlers = list(root.handlers)
    before_level = root.level
    yield root
    for h in list(root.handlers):
        if h not in before_handlers:
            root.removeHandler(h)
            h.close()
    root.setLevel(before_level)


def test_sha1_json_ignores_key_order():
    assert sha1_json({"a": 1, "b": [1, 2]}) == sha1_json({"b": [1, 2], "a": 1})
    assert sha1_json({"a": 1}) != sha1_json({"a": 2})


def test_sha1_text_is_hex_digest():
    h = sha1_text("demo")
    assert len(h) == 40
    assert h == sha1_text("demo")


def test_configure_logging_replaces_own_handlers(clean_root_logger, tmp_path):
    configure_logging("INFO")
    configure_logging("DEBUG", log_file=str(tmp_path / "logs" / "run.log"))

    ours = [h for h in clean_root_logger.handlers if getattr(h, "_search_pipeline_handler", False)]
    assert len(ours) == 2
    assert clean_root_logger.level == logging.DEBUG
    assert (tmp_path / "logs" / "run.log").exists()


def test_configure_logging_caps_azure_logger(clean_root_logger):
    configure_logging("INFO")
    assert logging.getLogger("azure").level == logging.WARNING


def test_unknown_level_rejected(clean_root_logger):
    with pytest.raises(ValueError):
        configure_logging("LOUD")


def test_configure_from_params(clean_root_logger):
    class _Params:
        run = RunConfig(log_level="warning")

    configure_logging_from_params(_Params())
    assert clean_root_logger.level == logging.WARNING
    configure_logging_from_params(_Params(), level="ERROR")
    assert clean_root_logger.level == logging.ERROR

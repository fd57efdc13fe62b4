# functions/utils/logging.py
"""
Logging helpers (stdlib `logging`)

Intent
- One place to configure console (+ optional file) logging for pipelines and the API.
- `get_logger(name)` for module loggers; configuration happens once per entrypoint.

Notes
- Reconfiguration is idempotent: handlers installed here are replaced, not stacked.
- Azure SDK HTTP logging is noisy at INFO; it is capped at WARNING unless DEBUG is requested.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_HANDLER_TAG = "_search_pipeline_handler"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def configure_logging(level: str = "INFO", *, log_file: Optional[str] = None) -> None:
    """Install console (+ file) handlers on the root logger."""
    root = logging.getLogger()
    lvl = logging.getLevelName(str(level).upper())
    if not isinstance(lvl, int):
        raise ValueError(f"Unknown log level: {level!r}")

    for h in list(root.handlers):
        if getattr(h, _HANDLER_TAG, False):
            root.removeHandler(h)
            h.close()

    formatter = logging.Formatter(_FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    setattr(console, _HANDLER_TAG, True)
    root.addHandler(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(formatter)
        setattr(fh, _HANDLER_TAG, True)
        root.addHandler(fh)

    root.setLevel(lvl)
    if lvl > logging.DEBUG:
        logging.getLogger("azure").setLevel(logging.WARNING)


def configure_logging_from_params(params: Any, *, level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure logging from a ParametersConfig (explicit args win over `params.run`)."""
    run = getattr(params, "run", None)
    lvl = level or getattr(run, "log_level", None) or "INFO"
    lf = log_file if log_file is not None else getattr(run, "log_file", None)
    configure_logging(lvl, log_file=lf)


__all__ = ["get_logger", "configure_logging", "configure_logging_from_params"]

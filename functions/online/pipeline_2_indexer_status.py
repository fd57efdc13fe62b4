# functions/online/pipeline_2_indexer_status.py
from __future__ import annotations

"""
Pipeline 2 - Indexer status (poll + classify)

Thin orchestration layer.

Responsibilities:
- Load config (parameters.yaml + credentials.yaml)
- Read the configured indexer's execution report once, or poll until it settles
- Return an API-friendly payload: category, message, polls, settled, raw report

Core logic lives in:
    functions/core/status.py   (classifier)
    functions/core/monitor.py  (poll loop)
"""

import time
from typing import Any, Callable, Dict, Optional

from functions.core.errors import SearchAdminError
from functions.core.monitor import poll_execution
from functions.core.synchronizer import CancellationToken, SearchAdminBackend
from functions.io.search_admin import build_search_backend
from functions.utils.config import CredentialsConfig, ParametersConfig, load_credentials, load_parameters
from functions.utils.logging import configure_logging_from_params, get_logger

logger = get_logger(__name__)


def run_pipeline_2_indexer_status(
    *,
    parameters_path: str = "configs/parameters.yaml",
    credentials_path: str = "configs/credentials.yaml",
    params: Optional[ParametersConfig] = None,
    creds: Optional[CredentialsConfig] = None,
    backend: Optional[SearchAdminBackend] = None,
    indexer_name: Optional[str] = None,
    wait: bool = False,
    cancel_token: Optional[CancellationToken] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    """
    Classify the indexer's current execution state.

    Args:
      indexer_name: defaults to `search.indexer.name`.
      wait: poll up to `monitor.max_polls` times until a terminal category.
    """
    params = params or load_parameters(parameters_path)
    name = indexer_name or params.search.indexer.name

    if backend is None:
        backend = build_search_backend(creds or load_credentials(credentials_path))

    if cancel_token is None and wait and params.monitor.time_budget_sec:
        cancel_token = CancellationToken.with_budget(params.monitor.time_budget_sec)

    poll = poll_execution(
        backend,
        name,
        interval_sec=params.monitor.poll_interval_sec,
        max_polls=params.monitor.max_polls if wait else 1,
        cancel_token=cancel_token,
        sleep=sleep,
    )
    return poll.to_dict()


def main(
    *,
    parameters_path: str = "configs/parameters.yaml",
    credentials_path: str = "configs/credentials.yaml",
    wait: bool = True,
) -> int:
    """Returns 0 when the indexer succeeded (fully or partially), 1 when it failed or could not be read, 2 when unsettled."""
    params = load_parameters(parameters_path)
    configure_logging_from_params(params, level=params.run.log_level, log_file=params.run.log_file)

    try:
        out = run_pipeline_2_indexer_status(
            parameters_path=parameters_path,
            credentials_path=credentials_path,
            params=params,
            wait=wait,
        )
    except SearchAdminError as e:
        logger.error("Indexer status unavailable: %s", e.message)
        return 1
    logger.info("Indexer %s: %s", out["indexer_name"], out["message"])

    if out["category"] == "failed":
        return 1
    return 0 if out["settled"] else 2


__all__ = ["run_pipeline_2_indexer_status", "main"]

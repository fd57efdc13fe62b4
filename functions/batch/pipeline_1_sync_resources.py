# functions/batch/pipeline_1_sync_resources.py
"""
Pipeline 1 - Synchronize search resources (data source, skillset, index, indexer)

Thin orchestrator for the configuration step.

Responsibilities:
- Load `configs/parameters.yaml` + `configs/credentials.yaml`
- Configure logging (main only)
- Validate the declarative pipeline definition and build descriptors (no network)
- Synchronize descriptors in order: DataSource -> EnrichmentPipeline -> IndexSchema -> Indexer
  (abort on the first failure)
- Read the indexer status once, or wait until it settles (`monitor.wait`)

Core logic lives in:
- `functions/core/pipeline_definition.py` (validation + wire payloads)
- `functions/core/synchronizer.py`        (create / replace / unchanged)
- `functions/core/monitor.py`             (poll + classify)

Outputs:
- A JSON-friendly dict: per-resource outcome + fingerprint, and the indexer status.
"""

from __future__ import annotations

import os
import time
from typing import Any, Callable, Dict, Optional

from functions.core.errors import SearchAdminError
from functions.core.monitor import poll_execution
from functions.core.pipeline_definition import build_pipeline_descriptors
from functions.core.synchronizer import CancellationToken, ResourceSynchronizer, SearchAdminBackend
from functions.io.search_admin import build_search_backend
from functions.utils.config import (
    CredentialsConfig,
    ParametersConfig,
    load_credentials,
    load_parameters,
    read_secret_env,
)
from functions.utils.logging import configure_logging_from_params, get_logger

logger = get_logger(__name__)

# Stands in for the storage secret when only building/validating payloads.
DRY_RUN_CONNECTION_STRING = "<unresolved>"


def _budget_token(params: ParametersConfig) -> Optional[CancellationToken]:
    budget = params.monitor.time_budget_sec
    return CancellationToken.with_budget(budget) if budget else None


def run_pipeline_1_sync_resources(
    *,
    parameters_path: str = "configs/parameters.yaml",
    credentials_path: str = "configs/credentials.yaml",
    params: Optional[ParametersConfig] = None,
    creds: Optional[CredentialsConfig] = None,
    backend: Optional[SearchAdminBackend] = None,
    dry_run: bool = False,
    force: bool = False,
    wait: Optional[bool] = None,
    cancel_token: Optional[CancellationToken] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[str, Any]:
    """
    Run Pipeline 1 and return a summary payload.

    Args:
      dry_run: validate + build descriptors only (no credentials, no network).
      force: rewrite every resource even when unchanged (e.g. after rotating the storage secret).
      wait: override `monitor.wait` (poll until the indexer settles).

    Raises:
      PipelineDefinitionError / InvalidResourceName: before any network call.
      ValidationRejected / NotAuthorized / RemoteUnavailable / SyncCancelled: from synchronization.
    """
    params = params or load_parameters(parameters_path)

    if dry_run:
        descriptors = build_pipeline_descriptors(params.search, connection_string=DRY_RUN_CONNECTION_STRING)
        logger.info("Dry run: %d resources validated", len(descriptors))
        return {
            "dry_run": True,
            "resources": [
                {"kind": d.kind.value, "name": d.name, "outcome": "planned", "fingerprint": d.fingerprint}
                for d in descriptors
            ],
        }

    creds = creds or load_credentials(credentials_path)
    connection_string = read_secret_env(
        creds.azure_search.storage_connection_string_env,
        purpose="storage connection string for the data source",
    )
    descriptors = build_pipeline_descriptors(params.search, connection_string=connection_string)

    backend = backend or build_search_backend(creds)
    token = cancel_token or _budget_token(params)

    sync = ResourceSynchronizer(backend)
    try:
        results = sync.synchronize_all(descriptors, force=force, cancel_token=token)
    except SearchAdminError as e:
        logger.error("Synchronization aborted: %s", e.message)
        raise

    for r in results:
        logger.info("%s %s: %s (%s)", r.kind.value, r.name, r.outcome.value, r.fingerprint[:12])

    do_wait = params.monitor.wait if wait is None else bool(wait)
    poll = poll_execution(
        backend,
        params.search.indexer.name,
        interval_sec=params.monitor.poll_interval_sec,
        max_polls=params.monitor.max_polls if do_wait else 1,
        cancel_token=token,
        sleep=sleep,
    )

    return {
        "dry_run": False,
        "resources": [r.to_dict() for r in results],
        "indexer_status": poll.to_dict(),
    }


def main(
    *,
    parameters_path: str = "configs/parameters.yaml",
    credentials_path: str = "configs/credentials.yaml",
) -> int:
    """Run Pipeline 1 end-to-end. Returns 0 on success, 1 on a synchronization error (CLI-friendly)."""

    params = load_parameters(parameters_path)

    # Configure logging early so every synchronization step is observable.
    configure_logging_from_params(params, level=params.run.log_level, log_file=params.run.log_file)

    dry_run = os.environ.get("SEARCH_SYNC_DRY_RUN", "").strip().lower() in {"1", "true", "yes"}
    try:
        out = run_pipeline_1_sync_resources(
            parameters_path=parameters_path,
            credentials_path=credentials_path,
            params=params,
            dry_run=dry_run,
        )
    except SearchAdminError as e:
        logger.error("Pipeline 1 aborted: %s", e.message)
        return 1

    status = out.get("indexer_status")
    if status:
        logger.info("Pipeline 1 completed: indexer %s", status["message"])
    else:
        logger.info("Pipeline 1 completed (dry run)")
    return 0


__all__ = ["run_pipeline_1_sync_resources", "main", "DRY_RUN_CONNECTION_STRING"]

# functions/batch/pipeline_3_teardown.py
"""
Pipeline 3 - Teardown

Delete the configured resources in reverse dependency order:
    Indexer -> IndexSchema -> EnrichmentPipeline -> DataSource

Resources that are already gone are reported as `absent`. Any other error aborts
the remaining deletions and propagates.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from functions.core.errors import SearchAdminError
from functions.core.pipeline_definition import build_pipeline_descriptors
from functions.core.synchronizer import CancellationToken, ResourceSynchronizer, SearchAdminBackend
from functions.io.search_admin import build_search_backend
from functions.utils.config import CredentialsConfig, ParametersConfig, load_credentials, load_parameters
from functions.utils.logging import configure_logging_from_params, get_logger

logger = get_logger(__name__)

# Deletion is by name only; the storage secret is never needed.
_NO_SECRET = "<unused>"


def run_pipeline_3_teardown(
    *,
    parameters_path: str = "configs/parameters.yaml",
    credentials_path: str = "configs/credentials.yaml",
    params: Optional[ParametersConfig] = None,
    creds: Optional[CredentialsConfig] = None,
    backend: Optional[SearchAdminBackend] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> Dict[str, Any]:
    params = params or load_parameters(parameters_path)
    descriptors = build_pipeline_descriptors(params.search, connection_string=_NO_SECRET)

    if backend is None:
        backend = build_search_backend(creds or load_credentials(credentials_path))

    results = ResourceSynchronizer(backend).teardown(descriptors, cancel_token=cancel_token)
    for r in results:
        logger.info("%s %s: %s", r.kind.value, r.name, r.outcome.value)
    return {"resources": [r.to_dict() for r in results]}


def main(
    *,
    parameters_path: str = "configs/parameters.yaml",
    credentials_path: str = "configs/credentials.yaml",
) -> int:
    params = load_parameters(parameters_path)
    configure_logging_from_params(params, level=params.run.log_level, log_file=params.run.log_file)
    try:
        run_pipeline_3_teardown(parameters_path=parameters_path, credentials_path=credentials_path, params=params)
    except SearchAdminError as e:
        logger.error("Teardown aborted: %s", e.message)
        return 1
    return 0


__all__ = ["run_pipeline_3_teardown", "main"]

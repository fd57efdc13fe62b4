"""
FastAPI service entrypoint for the search pipeline configurator.

Exposes a small HTTP surface over the synchronization + status pipelines:
- `GET /healthz` for liveness checks
- `POST /v1/pipeline/sync` to run `run_pipeline_1_sync_resources`
- `GET /v1/indexer/status` to run `run_pipeline_2_indexer_status`

Configuration:
- `PARAMETERS_PATH` and `CREDENTIALS_PATH` can be provided via environment variables.
  Defaults point to local repo paths for dev (`configs/parameters.yaml`, `configs/credentials.yaml`).

Error handling:
- Known search administration errors map to client-meaningful codes:
  ValidationRejected -> 422, NotAuthorized -> 403, RemoteUnavailable -> 503, SyncCancelled -> 504.
- All other exceptions are logged server-side (with stack trace) and returned as a
  generic 500 to avoid leaking internal details to clients.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from functions.batch.pipeline_1_sync_resources import run_pipeline_1_sync_resources
from functions.core.errors import (
    NotAuthorized,
    RemoteUnavailable,
    SearchAdminError,
    SyncCancelled,
    UnrecognizedStatus,
    ValidationRejected,
)
from functions.online.pipeline_2_indexer_status import run_pipeline_2_indexer_status

APP_NAME = "search_pipeline_configurator"
APP_VERSION = "0.1.0"

logger = logging.getLogger(__name__)

# Default config paths (override via env in prod)
DEFAULT_PARAMETERS_PATH = os.environ.get("PARAMETERS_PATH") or "configs/parameters.yaml"
DEFAULT_CREDENTIALS_PATH = os.environ.get("CREDENTIALS_PATH") or "configs/credentials.yaml"


class SyncRequest(BaseModel):
    """Request schema for `/v1/pipeline/sync`."""
    dry_run: bool = Field(False, description="Validate and build payloads only; no network calls")
    force: bool = Field(False, description="Rewrite resources even when unchanged")
    wait: Optional[bool] = Field(None, description="Override monitor.wait (poll until the indexer settles)")


class SyncResponse(BaseModel):
    """Response schema for `/v1/pipeline/sync`."""
    dry_run: bool
    resources: List[Dict[str, Any]]
    indexer_status: Optional[Dict[str, Any]] = None


class IndexerStatusResponse(BaseModel):
    """Response schema for `/v1/indexer/status`."""
    indexer_name: str
    category: str
    message: str
    polls: int
    settled: bool
    report: Dict[str, Any]


def _to_http(e: SearchAdminError) -> HTTPException:
    if isinstance(e, ValidationRejected):
        return HTTPException(status_code=422, detail=e.message)
    if isinstance(e, NotAuthorized):
        return HTTPException(status_code=403, detail="Not authorized against the search service")
    if isinstance(e, RemoteUnavailable):
        return HTTPException(status_code=503, detail="Search service unavailable")
    if isinstance(e, SyncCancelled):
        return HTTPException(status_code=504, detail=e.message)
    if isinstance(e, UnrecognizedStatus):
        logger.error("Unrecognized indexer status: %s", e.message)
    return HTTPException(status_code=500, detail="Internal server error")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application (used by ASGI server)."""
    app = FastAPI(title=APP_NAME, version=APP_VERSION)

    @app.get("/healthz")
    def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/v1/pipeline/sync", response_model=SyncResponse)
    def sync_pipeline(req: SyncRequest) -> Dict[str, Any]:
        """
        Synchronize data source, skillset, index and indexer.

        Notes:
        - This is a thin HTTP wrapper; core logic lives in `run_pipeline_1_sync_resources`.
        """
        try:
            return run_pipeline_1_sync_resources(
                parameters_path=DEFAULT_PARAMETERS_PATH,
                credentials_path=DEFAULT_CREDENTIALS_PATH,
                dry_run=req.dry_run,
                force=req.force,
                wait=req.wait,
            )
        except SearchAdminError as e:
            raise _to_http(e) from e
        except Exception as e:
            # Log full details internally; keep the HTTP response contract client-safe.
            logger.error("Pipeline error in /v1/pipeline/sync", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error") from e

    @app.get("/v1/indexer/status", response_model=IndexerStatusResponse)
    def indexer_status(
        name: Optional[str] = Query(None, min_length=1, description="Indexer name (defaults to configured)"),
    ) -> Dict[str, Any]:
        try:
            return run_pipeline_2_indexer_status(
                parameters_path=DEFAULT_PARAMETERS_PATH,
                credentials_path=DEFAULT_CREDENTIALS_PATH,
                indexer_name=name,
            )
        except SearchAdminError as e:
            raise _to_http(e) from e
        except Exception as e:
            logger.error("Pipeline error in /v1/indexer/status", exc_info=True)
            raise HTTPException(status_code=500, detail="Internal server error") from e

    return app

# ASGI entrypoint (e.g., `uvicorn app.main:app`)
app = create_app()

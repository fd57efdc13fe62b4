# functions/utils/config.py
"""
Config Loader - Search Enrichment Pipeline (Typed YAML Configs)

Intent
- Load and validate YAML configs:
  - configs/parameters.yaml   (desired state of the pipeline + run/monitor settings)
  - configs/credentials.yaml  (names of the env vars holding endpoint and secrets)
- Return typed configuration objects (Pydantic v2), used as the single source of truth
  by the batch pipelines, the status pipeline and the API.

What this module guarantees
- Strict validation: invalid configs fail fast with actionable Pydantic errors.
- Unicode whitespace hardening BEFORE YAML parse: NBSP/BOM/narrow NBSP normalized.
- Secrets are never read from files: credentials.yaml only names environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from functions.core.pipeline_definition import SearchPipelineSpec
from functions.utils.logging import get_logger


# -----------------------------
# Parameter models
# -----------------------------


class RunConfig(BaseModel):
    """Top-level runtime metadata (logging)."""
    name: str = "search_enrichment_pipeline"
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        lv = v.strip().upper()
        if lv not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"run.log_level must be a standard level name, got {v!r}")
        return lv


class MonitorConfig(BaseModel):
    """Indexer status polling after synchronization (and for the status pipeline)."""
    wait: bool = False
    poll_interval_sec: float = 5.0
    max_polls: int = 60
    time_budget_sec: Optional[float] = None

    @field_validator("poll_interval_sec")
    @classmethod
    def _validate_interval(cls, v: float) -> float:
        if v < 0:
            raise ValueError("monitor.poll_interval_sec must be >= 0")
        return v

    @field_validator("max_polls")
    @classmethod
    def _validate_max_polls(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("monitor.max_polls must be > 0")
        return v

    @field_validator("time_budget_sec")
    @classmethod
    def _validate_budget(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("monitor.time_budget_sec must be > 0 if provided")
        return v


class ParametersConfig(BaseModel):
    """Top-level typed view of parameters.yaml."""
    run: RunConfig = Field(default_factory=RunConfig)
    search: SearchPipelineSpec
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)


# -----------------------------
# Credentials models
# -----------------------------


class CredentialsSearchRequest(BaseModel):
    timeout_seconds: int = 60
    retry_total: int = 3

    @field_validator("timeout_seconds")
    @classmethod
    def _validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("azure_search.request.timeout_seconds must be > 0")
        return v

    @field_validator("retry_total")
    @classmethod
    def _validate_retry_total(cls, v: int) -> int:
        if v < 0:
            raise ValueError("azure_search.request.retry_total must be >= 0")
        return v


class CredentialsAzureSearch(BaseModel):
    endpoint_env: str = "AZURE_SEARCH_ENDPOINT"
    admin_key_env: str = "AZURE_SEARCH_ADMIN_KEY"
    storage_connection_string_env: str = "AZURE_BLOB_CONNECTION_STRING"
    request: CredentialsSearchRequest = Field(default_factory=CredentialsSearchRequest)


class CredentialsConfig(BaseModel):
    azure_search: CredentialsAzureSearch = Field(default_factory=CredentialsAzureSearch)


# -----------------------------
# YAML helpers
# -----------------------------

_BAD_WHITESPACE = ["\u00A0", "\u2007", "\u202F", "\uFEFF"]


def _load_yaml(path: str | Path) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"YAML file not found: {str(path)}")

    raw = p.read_text(encoding="utf-8")

    for ch in _BAD_WHITESPACE:
        raw = raw.replace(ch, " ")

    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML root must be a mapping/object: {str(path)}")
    return data


def load_parameters(path: str | Path = "configs/parameters.yaml") -> ParametersConfig:
    """Load parameters.yaml and return a validated typed ParametersConfig."""
    logger = get_logger(__name__)
    raw = _load_yaml(path)
    try:
        return ParametersConfig.model_validate(raw)
    except ValidationError as e:
        logger.error("Invalid parameters.yaml: %s", e)
        raise


def load_credentials(path: str | Path = "configs/credentials.yaml") -> CredentialsConfig:
    """Load credentials.yaml and return a validated typed CredentialsConfig."""
    logger = get_logger(__name__)
    raw = _load_yaml(path)
    try:
        return CredentialsConfig.model_validate(raw)
    except ValidationError as e:
        logger.error("Invalid credentials.yaml: %s", e)
        raise


def read_secret_env(env_name: str, *, purpose: str) -> str:
    """
    Read a required value from the environment.

    Raises:
      EnvironmentError: naming the variable (never the value).
    """
    value = os.environ.get(env_name, "").strip()
    if not value:
        raise EnvironmentError(f"Environment variable '{env_name}' not set ({purpose})")
    return value


__all__ = [
    "ParametersConfig",
    "CredentialsConfig",
    "RunConfig",
    "MonitorConfig",
    "load_parameters",
    "load_credentials",
    "read_secret_env",
]

# functions/search/client.py
"""
Azure AI Search client factory (azure-search-documents)

Intent
- Centralize construction of the two administrative SDK clients used by this repository:
  - SearchIndexClient   (index schemas)
  - SearchIndexerClient (data sources, skillsets, indexers, indexer status)
- Standardize resolution of:
  - service endpoint
  - authentication (admin key from environment variable)
  - transport knobs (timeout, retry count) from credentials.yaml

Design principles
- No network calls are performed here; this module only prepares client instances.
- Secrets are never read from files. The endpoint and admin key are provided via
  environment variables whose names are declared in `credentials.yaml`.

Configuration inputs
- `credentials_config` may be:
  1) a full credentials object with `.azure_search`
  2) an object/dict already representing the `azure_search` section
  3) a dict like `{"azure_search": {...}}`

Primary API
- get_endpoint(credentials_config) -> str
- build_search_clients(credentials_config) -> dict
    Returns:
      {
        "index_client": SearchIndexClient,
        "indexer_client": SearchIndexerClient,
        "endpoint": "<resolved endpoint>",
      }
"""

from __future__ import annotations

import os
from typing import Any, Dict

from azure.core.credentials import AzureKeyCredential
from azure.search.documents.indexes import SearchIndexClient, SearchIndexerClient

from functions.utils.logging import get_logger


def _get(obj: Any, key: str, default=None):
    """Best-effort getter supporting dicts and attribute-style config objects."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def _resolve_search_config(credentials_config: Any) -> Any:
    """
    Accept:
    - full creds object that has `.azure_search`
    - already azure_search section object
    - dict with {"azure_search": {...}} or direct {...}
    """
    if isinstance(credentials_config, dict):
        if isinstance(credentials_config.get("azure_search"), dict):
            return credentials_config["azure_search"]
        return credentials_config

    section = getattr(credentials_config, "azure_search", None)
    return section if section is not None else credentials_config


def _require_env(cfg: Any, key: str) -> str:
    env_name = _get(cfg, key, None)
    if not env_name:
        raise ValueError(f"credentials_config.{key} is required")
    value = os.environ.get(str(env_name), "").strip()
    if not value:
        raise EnvironmentError(f"Environment variable '{env_name}' not set ({key})")
    return value


def get_endpoint(credentials_config: Any) -> str:
    """Resolve the search service endpoint (https://<service>.search.windows.net)."""
    cfg = _resolve_search_config(credentials_config)
    endpoint = _require_env(cfg, "endpoint_env")
    if not endpoint.startswith("https://") and not endpoint.startswith("http://"):
        raise ValueError(f"Search endpoint must be an http(s) URL, got {endpoint!r}")
    return endpoint.rstrip("/")


def build_search_clients(credentials_config: Any) -> Dict[str, Any]:
    """
    Build the index + indexer clients sharing one admin key credential.

    Notes:
    - This function does not make any network calls.
    - Retry policy is owned by the SDK transport pipeline (`retry_total`).
    """
    logger = get_logger(__name__)

    cfg = _resolve_search_config(credentials_config)
    endpoint = get_endpoint(credentials_config)
    credential = AzureKeyCredential(_require_env(cfg, "admin_key_env"))

    request = _get(cfg, "request", None)
    timeout = int(_get(request, "timeout_seconds", 60))
    retry_total = int(_get(request, "retry_total", 3))

    transport_kwargs = {
        "retry_total": retry_total,
        "connection_timeout": timeout,
        "read_timeout": timeout,
    }

    # Keep logs non-sensitive; never log the admin key.
    logger.debug("Initializing search clients (endpoint=%s)", endpoint)

    return {
        "index_client": SearchIndexClient(endpoint, credential, **transport_kwargs),
        "indexer_client": SearchIndexerClient(endpoint, credential, **transport_kwargs),
        "endpoint": endpoint,
    }


__all__ = ["build_search_clients", "get_endpoint"]

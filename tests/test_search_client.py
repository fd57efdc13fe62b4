from __future__ import annotations

import pytest

import functions.search.client as search_client
from functions.search.client import build_search_clients, get_endpoint
from functions.utils.config import CredentialsConfig


class _CapturingClient:
    def __init__(self, endpoint, credential, **kwargs):
        self.endpoint = endpoint
        self.credential = credential
        self.kwargs = kwargs


@pytest.fixture
def capturing_clients(monkeypatch):
    monkeypatch.setattr(search_client, "SearchIndexClient", _CapturingClient)
    monkeypatch.setattr(search_client, "SearchIndexerClient", _CapturingClient)


def test_endpoint_from_env_strips_trailing_slash(monkeypatch):
    monkeypatch.setenv("AZURE_SEARCH_ENDPOINT", "https://demo.search.windows.net/")
    assert get_endpoint(CredentialsConfig()) == "https://demo.search.windows.net"


def test_endpoint_must_be_url(monkeypatch):
    monkeypatch.setenv("AZURE_SEARCH_ENDPOINT", "demo.search.windows.net")
    with pytest.raises(ValueError):
        get_endpoint(CredentialsConfig())


def test_missing_env_names_the_variable(monkeypatch):
    monkeypatch.delenv("AZURE_SEARCH_ENDPOINT", raising=False)
    with pytest.raises(EnvironmentError, match="AZURE_SEARCH_ENDPOINT"):
        get_endpoint(CredentialsConfig())


def test_accepts_section_dict(monkeypatch):
    monkeypatch.setenv("MY_ENDPOINT", "https://x.search.windows.net")
    assert get_endpoint({"azure_search": {"endpoint_env": "MY_ENDPOINT"}}) == "https://x.search.windows.net"
    assert get_endpoint({"endpoint_env": "MY_ENDPOINT"}) == "https://x.search.windows.net"


def test_build_clients_shares_key_and_transport_settings(search_env, capturing_clients):
    creds = CredentialsConfig.model_validate(
        {"azure_search": {"request": {"timeout_seconds": 15, "retry_total": 5}}}
    )
    out = build_search_clients(creds)

    assert out["endpoint"] == "https://demo-search.search.windows.net"
    ic, xc = out["index_client"], out["indexer_client"]
    assert ic.credential.key == "test-admin-key"
    assert xc.credential.key == "test-admin-key"
    assert ic.kwargs == {"retry_total": 5, "connection_timeout": 15, "read_timeout": 15}


def test_build_clients_requires_admin_key(monkeypatch, search_env, capturing_clients):
    monkeypatch.delenv("AZURE_SEARCH_ADMIN_KEY")
    with pytest.raises(EnvironmentError, match="AZURE_SEARCH_ADMIN_KEY"):
        build_search_clients(CredentialsConfig())

"""Unit tests for the protected resource client."""

from __future__ import annotations

import pytest
import requests

from api_client.resource_client import DEFAULT_RESOURCE_URL, ResourceClient
from auth_flow.errors import UpstreamCallError
from http_fakes import MockResponse, MockSession


def test_fetch_sends_bearer_token() -> None:
    session = MockSession(get_responses=[MockResponse({"items": []})])
    client = ResourceClient(session=session)

    response = client.fetch("token")

    assert response.json() == {"items": []}
    call = session.get_calls[0]
    assert call["url"] == DEFAULT_RESOURCE_URL
    assert call["kwargs"]["headers"] == {"Authorization": "Bearer token"}
    assert call["kwargs"]["timeout"] == 15


@pytest.mark.parametrize("status_code", [401, 403, 500])
def test_fetch_raises_on_error_status(status_code: int) -> None:
    session = MockSession(get_responses=[MockResponse({"error": "x"}, status_code=status_code)])
    client = ResourceClient("https://api.example.com/files", session=session)

    with pytest.raises(UpstreamCallError) as excinfo:
        client.fetch("token")

    assert excinfo.value.status_code == status_code


def test_fetch_wraps_transport_errors() -> None:
    session = MockSession(get_responses=[requests.ConnectionError("reset")])
    client = ResourceClient(session=session)

    with pytest.raises(UpstreamCallError):
        client.fetch("token")


def test_from_env_overrides_resource_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OAUTH_RESOURCE_URL", "https://api.example.com/me")

    assert ResourceClient.from_env().resource_url == "https://api.example.com/me"

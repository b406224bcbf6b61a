"""Tests for the upstream inference client.

All tests are deterministic and do not make real network calls.
"""

import json
from unittest.mock import MagicMock

import httpx
import pytest

from ai_proxy.app.errors import UpstreamError, UpstreamUnavailableError
from ai_proxy.app.llm.client import AnthropicClient

MESSAGES = [{"role": "user", "content": "Hello"}]


def _client(handler, metrics: MagicMock | None = None) -> AnthropicClient:
    return AnthropicClient(
        base_url="https://api.anthropic.test/",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        metrics=metrics or MagicMock(),
    )


@pytest.mark.asyncio
async def test_create_message_sends_payload_and_headers() -> None:
    """Test request shape sent to the Messages API."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "msg_1", "content": []})

    response = await _client(handler).create_message(
        api_key="sk-ant-k", model="claude-3-5-sonnet-20241022", max_tokens=100, messages=MESSAGES
    )

    assert response.status_code == 200
    assert response.body == {"id": "msg_1", "content": []}
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://api.anthropic.test/v1/messages"
    assert request.headers["x-api-key"] == "sk-ant-k"
    assert request.headers["anthropic-version"] == "2023-06-01"
    assert json.loads(request.content) == {
        "model": "claude-3-5-sonnet-20241022",
        "max_tokens": 100,
        "messages": MESSAGES,
    }


@pytest.mark.asyncio
async def test_error_status_raises_upstream_error() -> None:
    error_body = {"type": "error", "error": {"type": "rate_limit_error", "message": "Slow down"}}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(429, json=error_body)

    with pytest.raises(UpstreamError) as exc_info:
        await _client(handler).create_message(
            api_key="sk-ant-k", model="m", max_tokens=10, messages=MESSAGES
        )

    assert exc_info.value.status_code == 429
    assert exc_info.value.to_body() == {"error": "Slow down", "details": error_body}


@pytest.mark.asyncio
async def test_non_json_error_status_keeps_upstream_status() -> None:
    metrics = MagicMock()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, content=b"<html>Service Unavailable</html>")

    with pytest.raises(UpstreamError) as exc_info:
        await _client(handler, metrics).create_message(
            api_key="sk-ant-k", model="m", max_tokens=10, messages=MESSAGES
        )

    assert exc_info.value.status_code == 503
    assert exc_info.value.to_body() == {
        "error": "Claude API request failed",
        "details": "<html>Service Unavailable</html>",
    }
    assert metrics.record_upstream_latency.call_args[0][0] == "error"


@pytest.mark.asyncio
async def test_transport_error_raises_unavailable() -> None:
    metrics = MagicMock()

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow")

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await _client(handler, metrics).create_message(
            api_key="sk-ant-k", model="m", max_tokens=10, messages=MESSAGES
        )

    assert exc_info.value.status_code == 502
    assert metrics.record_upstream_latency.call_args[0][0] == "unreachable"


@pytest.mark.asyncio
async def test_non_json_body_raises_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"not json")

    with pytest.raises(UpstreamUnavailableError) as exc_info:
        await _client(handler).create_message(
            api_key="sk-ant-k", model="m", max_tokens=10, messages=MESSAGES
        )

    assert exc_info.value.error == "Invalid response from AI service"


@pytest.mark.asyncio
async def test_success_records_latency() -> None:
    metrics = MagicMock()

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={})

    await _client(handler, metrics).create_message(
        api_key="sk-ant-k", model="m", max_tokens=10, messages=MESSAGES
    )

    outcome, latency_ms = metrics.record_upstream_latency.call_args[0]
    assert outcome == "success"
    assert latency_ms >= 0


def test_from_settings_uses_configured_endpoint(settings_factory) -> None:
    client = AnthropicClient.from_settings(
        settings_factory(
            anthropic_base_url="https://proxy.internal", anthropic_version="2024-01-01"
        )
    )

    assert client._url == "https://proxy.internal/v1/messages"
    assert client._anthropic_version == "2024-01-01"

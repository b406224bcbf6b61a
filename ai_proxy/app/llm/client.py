"""Upstream inference client for the Anthropic Messages API.

Security: the API key is passed in per call by the relay service, which
resolves it from settings; it never comes from the caller.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Protocol

import httpx

from ai_proxy.app.config import Settings
from ai_proxy.app.errors import UpstreamError, UpstreamUnavailableError
from ai_proxy.app.utils.metrics import PrometheusRelayMetrics

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpstreamResponse:
    """Successful upstream reply, relayed to the caller unchanged."""

    status_code: int
    body: Any


class InferenceClient(Protocol):
    """Protocol for upstream inference client implementations."""

    async def create_message(
        self,
        *,
        api_key: str,
        model: str,
        max_tokens: int,
        messages: list[dict[str, Any]],
    ) -> UpstreamResponse:
        """Send one Messages API request.

        Args:
            api_key: Upstream credential
            model: Model identifier
            max_tokens: Output token limit
            messages: Chat messages in Messages API format

        Returns:
            UpstreamResponse with the upstream status and JSON body

        Raises:
            UpstreamError: Upstream answered with a non-2xx status
            UpstreamUnavailableError: Transport failure or non-JSON body
        """
        ...


class AnthropicClient:
    """httpx-backed client for POST /v1/messages."""

    def __init__(
        self,
        base_url: str = "https://api.anthropic.com",
        anthropic_version: str = "2023-06-01",
        timeout: float = 60.0,
        client: httpx.AsyncClient | None = None,
        metrics: PrometheusRelayMetrics | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL
            anthropic_version: Value of the anthropic-version header
            timeout: Request timeout in seconds
            client: Optional httpx client (for testing with mocks)
            metrics: Optional metrics sink for upstream latency
        """
        self._url = f"{base_url.rstrip('/')}/v1/messages"
        self._anthropic_version = anthropic_version
        self._timeout = timeout
        self._client = client
        self._metrics = metrics or PrometheusRelayMetrics()

    @classmethod
    def from_settings(
        cls, settings: Settings, client: httpx.AsyncClient | None = None
    ) -> "AnthropicClient":
        return cls(
            base_url=settings.anthropic_base_url,
            anthropic_version=settings.anthropic_version,
            timeout=settings.upstream_timeout_seconds,
            client=client,
        )

    @staticmethod
    def build_payload(
        model: str, max_tokens: int, messages: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """Request body sent upstream."""
        return {"model": model, "max_tokens": max_tokens, "messages": messages}

    async def create_message(
        self,
        *,
        api_key: str,
        model: str,
        max_tokens: int,
        messages: list[dict[str, Any]],
    ) -> UpstreamResponse:
        """Send one Messages API request."""
        headers = {
            "Content-Type": "application/json",
            "x-api-key": api_key,
            "anthropic-version": self._anthropic_version,
        }
        payload = self.build_payload(model, max_tokens, messages)

        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout)
            close_client = True

        start = time.perf_counter()
        try:
            try:
                response = await client.post(self._url, headers=headers, json=payload)
            except httpx.HTTPError as e:
                self._metrics.record_upstream_latency("unreachable", _elapsed_ms(start))
                logger.error(f"Claude API unreachable: {type(e).__name__}: {e}")
                raise UpstreamUnavailableError("AI service unavailable") from e
        finally:
            if close_client:
                await client.aclose()

        latency_ms = _elapsed_ms(start)

        if response.is_error:
            # Edge proxies answer overload and gateway errors with HTML
            try:
                error_body: Any = response.json()
            except ValueError:
                error_body = response.text
            self._metrics.record_upstream_latency("error", latency_ms)
            logger.error(f"Claude API error ({response.status_code}): {error_body!r:.500}")
            raise UpstreamError(response.status_code, error_body)

        try:
            data = response.json()
        except ValueError as e:
            self._metrics.record_upstream_latency("invalid_body", latency_ms)
            logger.error(
                f"Claude API returned non-JSON body (status {response.status_code}, "
                f"{len(response.content)} bytes)"
            )
            raise UpstreamUnavailableError("Invalid response from AI service") from e

        self._metrics.record_upstream_latency("success", latency_ms)
        logger.info(f"Claude API call successful ({response.status_code}, {latency_ms:.0f} ms)")
        return UpstreamResponse(status_code=response.status_code, body=data)


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000

"""Integration tests for /health, /healthz and /metrics endpoints."""

from collections.abc import Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client.parser import text_string_to_metric_families


def _samples(text: str) -> dict[tuple[str, frozenset], float]:
    """Index exposition samples by name and label set."""
    return {
        (sample.name, frozenset(sample.labels.items())): sample.value
        for family in text_string_to_metric_families(text)
        for sample in family.samples
    }


class TestHealthEndpoint:
    """Test /health and /healthz endpoints."""

    def test_health_always_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_healthz_returns_200_when_configured(self, client: TestClient) -> None:
        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"] == {
            "document_store": "configured",
            "upstream_secret": "configured",
        }

    @pytest.mark.parametrize(
        ("overrides", "component", "expected"),
        [
            ({"claude_api_key": None}, "upstream_secret", "misconfigured"),
            ({"claude_api_key": "wrong-prefix"}, "upstream_secret", "misconfigured"),
            ({"appwrite_function_project_id": None}, "document_store", "not_configured"),
        ],
    )
    def test_healthz_returns_503_when_misconfigured(
        self,
        build_app: Callable[..., FastAPI],
        settings_factory: Callable,
        overrides: dict,
        component: str,
        expected: str,
    ) -> None:
        client = TestClient(build_app(settings_factory(**overrides)))

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"][component] == expected


class TestMetricsEndpoint:
    """Test /metrics endpoint."""

    def test_metrics_exposes_relay_counters(self, client: TestClient) -> None:
        client.post("/ai-proxy", json={"tenantRef": "rest-1"})
        client.post(
            "/ai-proxy",
            headers={"x-appwrite-user-id": "user-owner"},
            json={"tenantRef": "rest-1", "messages": [{"role": "user", "content": "hi"}]},
        )

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        samples = _samples(response.text)
        assert samples[("proxy_rejections_total", frozenset({("step", "identity")}))] >= 1
        success = frozenset({("variant", "messages"), ("outcome", "success")})
        assert samples[("proxy_requests_total", success)] >= 1
        assert any(name == "upstream_latency_ms_bucket" for name, _ in samples)


def test_root(client: TestClient) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["message"] == "AI Analytics Proxy"

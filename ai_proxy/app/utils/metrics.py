"""Prometheus metrics for the relay handler."""

from prometheus_client import Counter, Histogram

proxy_requests_total = Counter(
    "proxy_requests_total",
    "Relay requests by variant and final outcome",
    ["variant", "outcome"],
)

proxy_rejections_total = Counter(
    "proxy_rejections_total",
    "Requests rejected, by the validation step that rejected them",
    ["step"],
)

upstream_latency_ms = Histogram(
    "upstream_latency_ms",
    "Upstream inference API latency in milliseconds",
    ["outcome"],
    buckets=[100, 250, 500, 1000, 2000, 5000, 10000, 20000, 40000, 60000],
)


class PrometheusRelayMetrics:
    """Prometheus-based relay metrics implementation."""

    def record_request(self, variant: str, outcome: str) -> None:
        """Count a finished request."""
        proxy_requests_total.labels(variant=variant, outcome=outcome).inc()

    def inc_rejection(self, step: str) -> None:
        """Count a rejection at a validation step."""
        proxy_rejections_total.labels(step=step).inc()

    def record_upstream_latency(self, outcome: str, latency_ms: float) -> None:
        """Record upstream call latency."""
        upstream_latency_ms.labels(outcome=outcome).observe(latency_ms)

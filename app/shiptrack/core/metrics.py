"""Prometheus counters for requests and the batch lifecycle.

All instruments live in a private registry so tests can ``reset`` them.
When ``METRICS_ENABLED`` is off every recorder is a no-op and ``render``
returns a plain-text marker.
"""
from __future__ import annotations

from dataclasses import dataclass

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from app.shiptrack.core.config import settings

_LATENCY_BUCKETS_MS = (5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000)
_HTTP_LABELS = ("route", "method", "status")


@dataclass
class MetricsSnapshot:
    content: bytes
    content_type: str


class Metrics:
    def __init__(self) -> None:
        self.enabled = settings.METRICS_ENABLED
        self._registry: CollectorRegistry | None = None
        if self.enabled:
            self._build()

    def _build(self) -> None:
        registry = CollectorRegistry()
        self._requests = Counter(
            "http_requests_total", "HTTP requests by route, method and status.", _HTTP_LABELS, registry=registry
        )
        self._latency = Histogram(
            "http_request_duration_ms",
            "HTTP request latency in milliseconds.",
            _HTTP_LABELS,
            buckets=_LATENCY_BUCKETS_MS,
            registry=registry,
        )
        self._transitions = Counter(
            "batch_transitions_total",
            "Batch lifecycle operations by outcome (applied, rejected, error).",
            ("operation", "result"),
            registry=registry,
        )
        self._lock_timeouts = Counter("lock_wait_timeout_total", "Lock wait timeouts.", registry=registry)
        self._rbac_denied = Counter("rbac_denied_total", "Requests refused by a role check.", registry=registry)
        self._registry = registry

    def reset(self) -> None:
        if self.enabled:
            self._build()

    def record_http_request(self, *, route: str, method: str, status_code: int, latency_ms: float) -> None:
        if not self.enabled:
            return
        labels = (route, method, str(status_code))
        self._requests.labels(*labels).inc()
        self._latency.labels(*labels).observe(latency_ms)

    def record_batch_transition(self, operation: str, result: str) -> None:
        if self.enabled:
            self._transitions.labels(operation=operation, result=result).inc()

    def increment_lock_wait_timeout(self) -> None:
        if self.enabled:
            self._lock_timeouts.inc()

    def increment_rbac_denied(self) -> None:
        if self.enabled:
            self._rbac_denied.inc()

    def render(self) -> MetricsSnapshot:
        if not self.enabled:
            return MetricsSnapshot(content=b"metrics_disabled\n", content_type="text/plain")
        return MetricsSnapshot(content=generate_latest(self._registry), content_type=CONTENT_TYPE_LATEST)


metrics = Metrics()

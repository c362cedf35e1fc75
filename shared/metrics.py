"""
Shared metrics configuration for the ladder viewer service.
"""

import time
from contextlib import contextmanager
from typing import Dict, Any, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, Info


class MetricsCollector:
    """Centralized metrics collector for services."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        # Each collector owns a registry so several app instances can coexist
        self.registry = registry or CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""

        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.1.0"
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        self._setup_viewer_metrics()

    def _setup_viewer_metrics(self):
        """Set up viewer aggregation metrics."""
        self._metrics["viewer_cache_lookups_total"] = Counter(
            "viewer_cache_lookups_total",
            "Viewer cache lookups",
            ["result"],
            registry=self.registry
        )

        self._metrics["viewer_cache_writes_total"] = Counter(
            "viewer_cache_writes_total",
            "Viewer cache writes",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["viewer_profile_assemblies_total"] = Counter(
            "viewer_profile_assemblies_total",
            "Profile assemblies",
            ["outcome"],
            registry=self.registry
        )

        self._metrics["viewer_upstream_calls_total"] = Counter(
            "viewer_upstream_calls_total",
            "Calls made to the ladder API",
            ["operation", "outcome"],
            registry=self.registry
        )

        self._metrics["viewer_batch_duration_seconds"] = Histogram(
            "viewer_batch_duration_seconds",
            "Time to assemble a full batch of profiles",
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.perf_counter()
        try:
            yield
        finally:
            duration = time.perf_counter() - start_time
            self.observe_histogram(operation_name, duration, **labels)

    def increment_counter(self, metric_name: str, **labels):
        """Increment a counter metric."""
        metric = self._metrics.get(metric_name)
        if metric is None:
            return
        (metric.labels(**labels) if labels else metric).inc()

    def observe_histogram(self, metric_name: str, value: float, **labels):
        """Observe a histogram metric."""
        metric = self._metrics.get(metric_name)
        if metric is None:
            return
        (metric.labels(**labels) if labels else metric).observe(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)

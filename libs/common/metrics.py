"""Metrics collection for the module search service.

Provides a thin convenience wrapper around ``prometheus_client`` so the
service records HTTP, search, and upstream fetch metrics consistently.

Design notes
- Metrics and labels are predeclared to keep label cardinality bounded
- A single registry is kept per service (can be injected for tests)
"""

from typing import Optional

from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest
import structlog

logger = structlog.get_logger("metrics")


class MetricsCollector:
    """Centralized metrics collection.

    Parameters
    - service_name: Logical name used for scoping
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.request_count = Counter(
            'http_requests_total',
            'Total HTTP requests',
            ['method', 'endpoint', 'status'],
            registry=self.registry
        )

        self.request_duration = Histogram(
            'http_request_duration_seconds',
            'HTTP request duration',
            ['method', 'endpoint'],
            registry=self.registry
        )

        self.search_requests = Counter(
            'module_search_requests_total',
            'Total module search requests',
            ['status'],
            registry=self.registry
        )

        self.search_duration = Histogram(
            'module_search_duration_seconds',
            'Module search duration',
            registry=self.registry
        )

        self.search_results = Histogram(
            'module_search_results',
            'Number of results returned per search',
            buckets=(0, 1, 2, 5, 10, 20, 50, 100),
            registry=self.registry
        )

        self.upstream_fetches = Counter(
            'module_index_fetches_total',
            'Requests made to the module index',
            ['kind', 'outcome'],
            registry=self.registry
        )

    def record_http_request(
        self,
        method: str,
        endpoint: str,
        status: int,
        duration: float
    ) -> None:
        """Record HTTP request metrics.

        duration is expected in seconds to match Prometheus histogram units.
        """
        self.request_count.labels(method=method, endpoint=endpoint, status=status).inc()
        self.request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def record_search(self, status: str, duration: float, result_count: int = 0) -> None:
        """Record a completed (``ok``) or failed (``error``) search."""
        self.search_requests.labels(status=status).inc()
        self.search_duration.observe(duration)
        if status == "ok":
            self.search_results.observe(result_count)

    def record_upstream_fetch(self, kind: str, outcome: str) -> None:
        """Record one module index request.

        ``kind`` is ``repos``, ``listing`` or ``module``; ``outcome`` is
        ``ok`` or ``error``.
        """
        self.upstream_fetches.labels(kind=kind, outcome=outcome).inc()

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format for scraping."""
        return generate_latest(self.registry).decode('utf-8')


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector(service_name: str) -> MetricsCollector:
    """Get or create the metrics collector for a service.

    Returns a process-wide singleton to avoid duplicate collectors/labels.
    """
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector(service_name)
    return _metrics_collector

"""
Prometheus metrics for the tasks service.

Tracks which layer serves repository reads, write outcomes and HTTP traffic.
"""

from fastapi import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "tasks_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "tasks_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Repository metrics
repository_reads_total = Counter(
    "tasks_repository_reads_total",
    "Repository reads by the layer that answered them",
    ["operation", "source"],
)

repository_writes_total = Counter(
    "tasks_repository_writes_total",
    "Repository writes by outcome",
    ["operation", "status"],
)

repository_cache_size = Gauge(
    "tasks_repository_cache_size", "Number of tasks held in the in-memory cache"
)


def track_read(operation: str, source: str) -> None:
    """Record which layer answered a read (cache, local, remote or unavailable)."""
    repository_reads_total.labels(operation=operation, source=source).inc()


def track_write(operation: str, success: bool) -> None:
    """Record the outcome of a fanned-out write."""
    status = "success" if success else "failure"
    repository_writes_total.labels(operation=operation, status=status).inc()


def track_request_metrics(
    method: str, endpoint: str, status_code: int, duration: float
) -> None:
    """
    Track HTTP request metrics.

    Args:
        method: HTTP method
        endpoint: Request path
        status_code: Response status code
        duration: Request duration in seconds
    """
    http_requests_total.labels(
        method=method, endpoint=endpoint, status=str(status_code)
    ).inc()
    http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(
        duration
    )


def metrics_response() -> Response:
    """Render all metrics in the Prometheus text format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

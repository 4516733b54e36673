"""Prometheus metrics for request, search and index golden signals."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest


if TYPE_CHECKING:
    from collections.abc import Generator


REQUEST_LATENCY = Histogram(
    "austen_request_latency_seconds",
    "HTTP request latency in seconds",
    ["endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

REQUEST_COUNT = Counter(
    "austen_requests_total",
    "Total HTTP requests",
    ["endpoint", "status"],
)

ERROR_COUNT = Counter(
    "austen_errors_total",
    "Total errors",
    ["error_type", "component"],
)

SEARCH_LATENCY = Histogram(
    "austen_search_latency_seconds",
    "Index query latency",
    ["index", "operation"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5),
)

INDEX_DOC_COUNT = Gauge(
    "austen_index_document_count",
    "Documents in index",
    ["index"],
)

OTLP_EXPORT_ERRORS = Counter(
    "austen_otlp_export_errors_total",
    "Total OTLP export configuration errors",
)

OTLP_EXPORT_STATUS = Gauge(
    "austen_otlp_exporter_enabled",
    "OTLP exporter enabled status (1=enabled, 0=disabled)",
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST

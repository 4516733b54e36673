"""Logging, tracing and metrics for the search service."""

from austen_search.observability.context import TraceIds, bind_span, bind_trace, current_trace
from austen_search.observability.logging import JsonFormatter, configure_logging
from austen_search.observability.metrics import (
    ERROR_COUNT,
    INDEX_DOC_COUNT,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    SEARCH_LATENCY,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from austen_search.observability.tracing import (
    TraceContextMiddleware,
    configure_trace_exporter,
    create_span,
    get_tracer,
    init_tracing,
    trace_request,
)


__all__ = [
    "ERROR_COUNT",
    "INDEX_DOC_COUNT",
    "REQUEST_COUNT",
    "REQUEST_LATENCY",
    "SEARCH_LATENCY",
    "JsonFormatter",
    "TraceContextMiddleware",
    "TraceIds",
    "bind_span",
    "bind_trace",
    "configure_logging",
    "configure_trace_exporter",
    "create_span",
    "current_trace",
    "get_metrics",
    "get_metrics_content_type",
    "get_tracer",
    "init_tracing",
    "trace_request",
    "track_latency",
]

"""OpenTelemetry spans for requests and index calls.

Spans are always recorded in-process; they leave the process only when an
OTLP/HTTP endpoint is configured. Every span also becomes the log span id
while it is open, so JSON log lines point at the span that wrote them.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import SpanKind, Status, StatusCode

from austen_search.observability.context import bind_span, bind_trace, current_trace
from austen_search.observability.metrics import OTLP_EXPORT_ERRORS, OTLP_EXPORT_STATUS


if TYPE_CHECKING:
    from collections.abc import Iterator

    from opentelemetry.trace import Span, Tracer
    from starlette.requests import Request
    from starlette.responses import Response

logger = logging.getLogger(__name__)

SERVICE_NAME = "austen-search"
TRACE_ID_HEADER = b"x-trace-id"

_active: dict[str, Tracer | None] = {"tracer": None}


def init_tracing(
    service_name: str = SERVICE_NAME,
    resource_attributes: dict[str, str] | None = None,
) -> TracerProvider:
    """Install an SDK tracer provider as the global provider."""
    provider = TracerProvider(resource=Resource.create({"service.name": service_name, **(resource_attributes or {})}))
    trace.set_tracer_provider(provider)
    _active["tracer"] = provider.get_tracer("austen_search")
    logger.debug("Tracer provider installed", extra={"service": service_name})
    return provider


def _sdk_provider() -> TracerProvider:
    current = trace.get_tracer_provider()
    return current if isinstance(current, TracerProvider) else init_tracing()


def configure_trace_exporter(
    endpoint: str | None,
    provider: TracerProvider | None = None,
    *,
    timeout_seconds: float = 10.0,
) -> bool:
    """Ship spans to an OTLP/HTTP collector at ``endpoint``.

    Returns whether export is active; an empty endpoint disables it.
    """
    enabled = False
    if endpoint:
        target = provider if provider is not None else _sdk_provider()
        try:
            processor = BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, timeout=timeout_seconds))
        except Exception:
            logger.exception("Span exporter rejected endpoint %s", endpoint)
            OTLP_EXPORT_ERRORS.inc()
        else:
            target.add_span_processor(processor)
            enabled = True
            logger.info("Exporting spans", extra={"otlp_endpoint": endpoint})
    OTLP_EXPORT_STATUS.set(1 if enabled else 0)
    return enabled


def get_tracer() -> Tracer:
    tracer = _active["tracer"]
    if tracer is None:
        init_tracing()
        tracer = _active["tracer"]
    return tracer  # type: ignore[return-value]


@contextmanager
def create_span(
    name: str,
    kind: SpanKind = SpanKind.INTERNAL,
    attributes: dict[str, Any] | None = None,
) -> Iterator[Span]:
    """Open a span and log under its id until it ends."""
    parent_span_id = current_trace().span_id
    with get_tracer().start_as_current_span(
        name,
        kind=kind,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        bind_span(format(span.get_span_context().span_id, "016x"))
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
        finally:
            bind_span(parent_span_id)


class TraceContextMiddleware:
    """ASGI middleware binding a trace id to every HTTP request.

    A client-supplied ``x-trace-id`` header is joined; otherwise the request
    starts its own trace.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] == "http":
            incoming = next((value for name, value in scope.get("headers", []) if name == TRACE_ID_HEADER), b"")
            bind_trace(incoming.decode("latin-1") or None)
        await self.app(scope, receive, send)


async def trace_request(request: Request, call_next: Any) -> Response:
    """HTTP middleware running each request inside a server span."""
    attributes = {
        "http.method": request.method,
        "http.target": request.url.path,
        "search.query_length": len(request.query_params.get("q", "")),
    }
    with create_span(f"{request.method} {request.url.path}", kind=SpanKind.SERVER, attributes=attributes) as span:
        response: Response = await call_next(request)
        span.set_attribute("http.status_code", response.status_code)
        if response.status_code >= 500:
            span.set_status(Status(StatusCode.ERROR, f"HTTP {response.status_code}"))
    return response

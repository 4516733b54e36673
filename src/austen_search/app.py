"""Starlette application serving search, typeahead, health and metrics.

Indexes are built from the packed corpus during startup (in a worker thread)
unless a ready ``SearchService`` is injected, which is how tests run the app.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
import logging

from pydantic import BaseModel
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from austen_search.config import Settings
from austen_search.domain.search import ErrorResponse, SearchResponse, TypeaheadResponse
from austen_search.errors import IndexUnavailableError, SearchIndexError
from austen_search.observability.metrics import (
    ERROR_COUNT,
    INDEX_DOC_COUNT,
    REQUEST_COUNT,
    REQUEST_LATENCY,
    get_metrics,
    get_metrics_content_type,
    track_latency,
)
from austen_search.observability.tracing import TraceContextMiddleware, configure_trace_exporter, trace_request
from austen_search.service_layer.search_service import SearchService, build_search_service


logger = logging.getLogger(__name__)


def _json(model: BaseModel, status_code: int = 200) -> JSONResponse:
    return JSONResponse(model.model_dump(mode="json", by_alias=True), status_code=status_code)


def _service(request: Request) -> SearchService:
    service: SearchService | None = getattr(request.app.state, "search_service", None)
    if service is None:
        raise IndexUnavailableError("Search indexes are still being built")
    return service


async def _respond(endpoint: str, produce: Callable[[], Awaitable[BaseModel]]) -> JSONResponse:
    """Run ``produce`` and map index failures to JSON error responses without partial items."""
    try:
        with track_latency(REQUEST_LATENCY, endpoint=endpoint):
            payload = await produce()
    except SearchIndexError as exc:
        status_code = 503 if isinstance(exc, IndexUnavailableError) else 500
        logger.error("%s request failed: %s", endpoint, exc, extra={"status_code": status_code})
        ERROR_COUNT.labels(error_type=type(exc).__name__, component=endpoint).inc()
        REQUEST_COUNT.labels(endpoint=endpoint, status=str(status_code)).inc()
        return _json(ErrorResponse(error=str(exc)), status_code=status_code)

    REQUEST_COUNT.labels(endpoint=endpoint, status="200").inc()
    return _json(payload)


def build_search_endpoint():
    async def search_endpoint(request: Request) -> Response:
        query = request.query_params.get("q", "")

        async def produce() -> SearchResponse:
            if not query.strip():
                return SearchResponse(time=0.0)
            return await _service(request).search(query)

        return await _respond("search", produce)

    return search_endpoint


def build_typeahead_endpoint():
    async def typeahead_endpoint(request: Request) -> Response:
        query = request.query_params.get("q", "")

        async def produce() -> TypeaheadResponse:
            if not query.strip():
                return TypeaheadResponse(time=0.0)
            return await _service(request).typeahead(query)

        return await _respond("typeahead", produce)

    return typeahead_endpoint


def build_health_endpoint():
    """Return a coroutine function reporting index readiness."""

    async def health_check(request: Request) -> JSONResponse:
        service: SearchService | None = getattr(request.app.state, "search_service", None)
        if service is None:
            return JSONResponse({"status": "unavailable", "indexes": {}}, status_code=503)
        health = service.health()
        return JSONResponse(health, status_code=200 if health["status"] == "ok" else 503)

    return health_check


def build_metrics_endpoint():
    async def metrics_endpoint(_: Request) -> Response:
        return Response(content=get_metrics(), media_type=get_metrics_content_type())

    return metrics_endpoint


def _record_index_sizes(service: SearchService) -> None:
    INDEX_DOC_COUNT.labels(index="paragraphs").set(service.index.doc_count)
    INDEX_DOC_COUNT.labels(index="phrases").set(service.phrase_index.doc_count)


def create_app(settings: Settings | None = None, *, search_service: SearchService | None = None) -> Starlette:
    """Build the ASGI application."""
    settings = settings or Settings()
    configure_trace_exporter(settings.otlp_endpoint)

    @asynccontextmanager
    async def lifespan(app: Starlette):
        if app.state.search_service is None:
            logger.info("Building indexes from %s", settings.corpus_dir)
            app.state.search_service = await asyncio.to_thread(build_search_service, settings)
        _record_index_sizes(app.state.search_service)
        yield

    routes = [
        Route("/search/", endpoint=build_search_endpoint(), methods=["GET"]),
        Route("/typeahead/", endpoint=build_typeahead_endpoint(), methods=["GET"]),
        Route("/health", endpoint=build_health_endpoint(), methods=["GET"]),
        Route("/metrics", endpoint=build_metrics_endpoint(), methods=["GET"]),
    ]

    app = Starlette(
        debug=settings.log_level.lower() == "debug",
        routes=routes,
        lifespan=lifespan,
    )
    app.state.search_service = search_service
    app.add_middleware(CORSMiddleware, allow_origins=settings.get_cors_origins(), allow_methods=["GET"])
    app.middleware("http")(trace_request)
    app.add_middleware(TraceContextMiddleware)
    return app

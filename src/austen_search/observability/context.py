"""Trace ids of the running task, used to correlate log lines with spans."""

from __future__ import annotations

from contextvars import ContextVar
import secrets
from typing import NamedTuple


class TraceIds(NamedTuple):
    trace_id: str
    span_id: str


_current: ContextVar[TraceIds | None] = ContextVar("austen_trace_ids", default=None)


def new_trace_id() -> str:
    """32 hex chars, the W3C trace id width."""
    return secrets.token_hex(16)


def new_span_id() -> str:
    return secrets.token_hex(8)


def current_trace() -> TraceIds:
    """Ids bound to this task; a fresh trace is started on first use."""
    ids = _current.get()
    if ids is None:
        ids = bind_trace()
    return ids


def bind_trace(trace_id: str | None = None) -> TraceIds:
    """Start a trace, or join ``trace_id``, with a new span id."""
    ids = TraceIds(trace_id or new_trace_id(), new_span_id())
    _current.set(ids)
    return ids


def bind_span(span_id: str) -> TraceIds:
    ids = current_trace()._replace(span_id=span_id)
    _current.set(ids)
    return ids

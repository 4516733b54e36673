"""Log setup: one orjson line per record, tagged with the task's trace ids."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from pathlib import PurePath
import sys
from typing import Any

import orjson

from austen_search.observability.context import current_trace


# attributes every LogRecord has; anything else arrived through ``extra=``
_RECORD_ATTRIBUTES = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime", "taskName"}
_QUIET_LOGGERS = ("httpx", "httpcore")
PLAIN_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _level(name: str, default: int = logging.INFO) -> int:
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else default


def _to_json(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, (PurePath, BaseException)):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return repr(value)


class JsonFormatter(logging.Formatter):
    """Structured formatter for the server and the CLI.

    Each line carries the record time, level, logger, message, the trace and
    span ids bound to the emitting task, the last dotted part of the logger
    name as ``component``, and every ``extra=`` field. Long messages and long
    string extras are clipped; extras named like credentials are masked.
    """

    MAX_MESSAGE_LEN = 2000
    MAX_VALUE_LEN = 500
    MASKED_KEYS = frozenset({"password", "token", "secret", "authorization"})

    def format(self, record: logging.LogRecord) -> str:
        trace_ids = current_trace()
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "component": record.name.rpartition(".")[2],
            "message": self._clip(record.getMessage(), self.MAX_MESSAGE_LEN),
            "trace_id": trace_ids.trace_id,
            "span_id": trace_ids.span_id,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(self._extras(record))
        return orjson.dumps(entry, default=_to_json).decode("utf-8")

    def _extras(self, record: logging.LogRecord) -> dict[str, Any]:
        extras: dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES or key.startswith("_"):
                continue
            if key.lower() in self.MASKED_KEYS:
                extras[key] = "***"
            elif isinstance(value, str):
                extras[key] = self._clip(value, self.MAX_VALUE_LEN)
            else:
                extras[key] = value
        return extras

    @staticmethod
    def _clip(text: str, limit: int) -> str:
        return text if len(text) <= limit else text[:limit] + "..."


def configure_logging(
    level: str = "INFO",
    json_output: bool = True,
    *,
    logger_levels: dict[str, str] | None = None,
    access_log: bool = False,
) -> None:
    """Replace the root handlers with a single stdout handler.

    Args:
        level: Root log level name
        json_output: Use ``JsonFormatter``; plain text otherwise
        logger_levels: Per-logger level overrides (logger name -> level name)
        access_log: Keep uvicorn's per-request access lines
    """
    root = logging.getLogger()
    root.setLevel(_level(level))
    for existing in list(root.handlers):
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if json_output else logging.Formatter(PLAIN_FORMAT))
    root.addHandler(handler)

    quiet = [*_QUIET_LOGGERS, *([] if access_log else ["uvicorn.access"])]
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
    for name, name_level in (logger_levels or {}).items():
        logging.getLogger(name).setLevel(_level(name_level))

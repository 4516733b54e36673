"""Wall-clock timing for benchmarks and response ``time`` fields."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import time
from typing import TypeVar


T = TypeVar("T")


async def timed(operation: Callable[[], Awaitable[T]]) -> tuple[T, float]:
    """Await ``operation()`` and return its result with the elapsed milliseconds."""
    start = time.perf_counter()
    result = await operation()
    return result, (time.perf_counter() - start) * 1000.0

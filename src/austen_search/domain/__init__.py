"""Domain layer - display value objects with no infrastructure dependencies.

Immutable Pydantic models describing what the HTTP surface returns.
"""

from austen_search.domain.search import (
    ErrorResponse,
    FragmentPayload,
    HighlightRangePayload,
    SearchItem,
    SearchResponse,
    TypeaheadResponse,
)


__all__ = [
    "ErrorResponse",
    "FragmentPayload",
    "HighlightRangePayload",
    "SearchItem",
    "SearchResponse",
    "TypeaheadResponse",
]

"""Exception hierarchy shared by the search pipeline and the HTTP layer."""

from __future__ import annotations


class AustenSearchError(Exception):
    """Base class for errors raised by austen_search."""


class SearchIndexError(AustenSearchError):
    """Raised when the search index cannot serve a request."""


class IndexUnavailableError(SearchIndexError):
    """Raised when the index has not been built (committed) yet."""


class UnknownFieldError(SearchIndexError):
    """Raised when a query targets a field the index schema cannot search."""

    def __init__(self, field_name: str, reason: str = "not in schema") -> None:
        super().__init__(f"Unknown field '{field_name}': {reason}")
        self.field_name = field_name


class MalformedMatchSpanError(AustenSearchError, ValueError):
    """Raised when highlight matches are unsorted, overlapping or out of bounds."""


class CorpusError(AustenSearchError):
    """Raised when packed corpus files do not have the expected shape."""

"""Search index port.

The inverted index is an external collaborator. Everything above this layer
talks to it through ``AbstractSearchIndex``: deterministic tokenization with
the index analyzer, async search returning ranked hits whose stored fields
are JSON with every value wrapped in a list, and a term dictionary lookup by
regular expression.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, NamedTuple

from austen_search.search.models import Token
from austen_search.search.queries import QueryInput


class SearchHit(NamedTuple):
    """One ranked hit: score, stored fields as JSON, optional explanation."""

    score: float
    document: str
    explanation: str | None = None


class AbstractSearchIndex(ABC):
    """Capability contract of the external search index."""

    @abstractmethod
    def tokenize(self, text: str) -> list[Token]:
        """Tokenize ``text`` with the same analyzer used at index time."""
        raise NotImplementedError

    @abstractmethod
    async def search(self, query: QueryInput, *, top: int = 10, explain: bool = False) -> list[SearchHit]:
        """Return at most ``top`` hits for ``query``, best first.

        Raises:
            IndexUnavailableError: The index has not been built yet.
            UnknownFieldError: The query names a field the schema cannot search.
        """
        raise NotImplementedError

    @abstractmethod
    async def search_terms(self, field: str, pattern: str) -> list[str]:
        """Return the sorted dictionary terms of ``field`` fully matching ``pattern``."""
        raise NotImplementedError

    @abstractmethod
    def add_document(self, document: Mapping[str, Any]) -> int:
        """Queue a document for the next commit and return its address."""
        raise NotImplementedError

    @abstractmethod
    def commit(self) -> None:
        """Make every queued document searchable."""
        raise NotImplementedError

    @property
    @abstractmethod
    def doc_count(self) -> int:
        """Number of searchable documents."""
        raise NotImplementedError

    @property
    def is_ready(self) -> bool:
        """Whether the index has been committed at least once."""
        return True

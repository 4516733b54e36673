"""Query values and the query builder.

A query is built per request from tokenized query text and consumed once by
the index. The index accepts a ``QueryInput``: either ``RawQueryText`` that
the index parses over a set of default fields, or a ``CompiledQuery``
wrapping one of the query specs below. Both carry a ``kind`` tag so the index
resolves them explicitly.

Shape selection for search-as-you-type:

- no terms: no query at all
- one term: fuzzy term query with ``is_prefix=True``
- several terms: phrase-prefix query (exact for all but the last term, which
  matches by prefix)
- ``exact=True``: plain term or phrase query, for relevance search over
  complete tokens
"""

from __future__ import annotations

from collections.abc import Sequence
import dataclasses
from dataclasses import dataclass
from typing import Literal

from austen_search.search.schema import IndexRecordOption


@dataclass(frozen=True)
class FuzzyTermQuery:
    term: str
    field: str
    max_distance: int = 0
    is_prefix: bool = False
    kind: Literal["fuzzyPrefixTerm"] = dataclasses.field(default="fuzzyPrefixTerm", init=False)

    @property
    def terms(self) -> tuple[str, ...]:
        return (self.term,)


@dataclass(frozen=True)
class PhrasePrefixQuery:
    terms: tuple[str, ...]
    field: str
    max_expansions: int = 50
    kind: Literal["phrasePrefix"] = dataclasses.field(default="phrasePrefix", init=False)


@dataclass(frozen=True)
class TermQuery:
    term: str
    field: str
    record_option: IndexRecordOption = IndexRecordOption.WITH_FREQS
    kind: Literal["term"] = dataclasses.field(default="term", init=False)

    @property
    def terms(self) -> tuple[str, ...]:
        return (self.term,)


@dataclass(frozen=True)
class PhraseQuery:
    terms: tuple[str, ...]
    field: str
    kind: Literal["phrase"] = dataclasses.field(default="phrase", init=False)


QuerySpec = FuzzyTermQuery | PhrasePrefixQuery | TermQuery | PhraseQuery


@dataclass(frozen=True)
class RawQueryText:
    """Unparsed query text, matched term by term over ``fields``."""

    text: str
    fields: tuple[str, ...]
    kind: Literal["raw"] = dataclasses.field(default="raw", init=False)


@dataclass(frozen=True)
class CompiledQuery:
    """A query built ahead of the index call."""

    spec: QuerySpec
    kind: Literal["compiled"] = dataclasses.field(default="compiled", init=False)


QueryInput = RawQueryText | CompiledQuery


def fuzzy_term_query(term: str, field: str, *, max_distance: int = 0, is_prefix: bool = False) -> FuzzyTermQuery:
    if not term:
        raise ValueError("Fuzzy term query needs a non-empty term")
    if max_distance < 0:
        raise ValueError(f"max_distance must be >= 0, got {max_distance}")
    return FuzzyTermQuery(term=term, field=field, max_distance=max_distance, is_prefix=is_prefix)


def phrase_prefix_query(terms: Sequence[str], field: str) -> PhrasePrefixQuery:
    if not terms or not all(terms):
        raise ValueError("Phrase prefix query needs at least one non-empty term")
    return PhrasePrefixQuery(terms=tuple(terms), field=field)


def term_query(
    term: str,
    field: str,
    record_option: IndexRecordOption = IndexRecordOption.WITH_FREQS,
) -> TermQuery:
    if not term:
        raise ValueError("Term query needs a non-empty term")
    return TermQuery(term=term, field=field, record_option=record_option)


def phrase_query(terms: Sequence[str], field: str) -> PhraseQuery:
    if len(terms) < 2 or not all(terms):
        raise ValueError("Phrase query needs at least two non-empty terms")
    return PhraseQuery(terms=tuple(terms), field=field)


def build_query(
    terms: Sequence[str],
    field: str,
    *,
    max_distance: int = 0,
    exact: bool = False,
) -> QuerySpec | None:
    """Choose and build the query for already-tokenized query terms.

    Terms are lowercased because the index analyzer lowercases at index time.
    Returns ``None`` for an empty term list so callers skip the index call.
    """
    normalized = [term.lower() for term in terms if term]
    if not normalized:
        return None
    if len(normalized) == 1:
        if exact:
            return term_query(normalized[0], field)
        return fuzzy_term_query(normalized[0], field, max_distance=max_distance, is_prefix=True)
    if exact:
        return phrase_query(normalized, field)
    return phrase_prefix_query(normalized, field)

"""In-memory inverted index implementing ``AbstractSearchIndex``.

* ``SegmentWriter`` accepts schema-aware documents and produces immutable
  ``IndexSegment`` instances with postings, stored fields and field lengths.
* ``IndexSegment`` exposes postings, the sorted term dictionary per field and
  stored fields.
* ``MemorySearchIndex`` swaps in a fresh segment on every ``commit()`` and
  evaluates query specs against it off the event loop.

Nothing is persisted. Scoring is a plain BM25 weight; the only guarantee is a
stable ordering of hits (score descending, then document address).
"""

from __future__ import annotations

from array import array
import asyncio
import bisect
from collections import defaultdict
from collections.abc import Iterable, Mapping, MutableMapping, Sequence
from dataclasses import dataclass
import logging
import re
from typing import Any

import orjson

from austen_search.adapters.search_index import AbstractSearchIndex, SearchHit
from austen_search.errors import IndexUnavailableError, SearchIndexError
from austen_search.search.analyzers import TokenizerRegistry, default_registry
from austen_search.search.fuzzy import fuzzy_term_matches
from austen_search.search.models import Posting, Token
from austen_search.search.queries import (
    CompiledQuery,
    FuzzyTermQuery,
    PhrasePrefixQuery,
    PhraseQuery,
    QueryInput,
    QuerySpec,
    RawQueryText,
    TermQuery,
)
from austen_search.search.schema import (
    PARAGRAPH_TOKENIZER,
    IndexRecordOption,
    NumericField,
    Schema,
    SchemaField,
    TextField,
)
from austen_search.search.stats import average_field_lengths, bm25, calculate_idf


logger = logging.getLogger(__name__)

# positions skipped between repeated values of one field so phrases never span them
_VALUE_POSITION_GAP = 100


def _as_values(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [item for item in value if item is not None]
    return [value]


def _freeze_postings(by_doc: Mapping[int, list[int]], *, keep_positions: bool) -> list[Posting]:
    # basic records keep one position so frequency-free fields still yield hits
    return [
        Posting(doc_id=doc_id, positions=array("I", positions if keep_positions else positions[:1]))
        for doc_id, positions in sorted(by_doc.items())
    ]


def _follow(ends: Mapping[int, set[int]], postings: Iterable[Posting]) -> dict[int, set[int]]:
    """Positions in ``postings`` directly after a position in ``ends``, by document."""
    followed: dict[int, set[int]] = {}
    for posting in postings:
        previous = ends.get(posting.doc_id)
        if not previous:
            continue
        positions = {position for position in posting.positions if position - 1 in previous}
        if positions:
            followed[posting.doc_id] = positions
    return followed


@dataclass(frozen=True, slots=True)
class IndexSegment:
    """Immutable, searchable snapshot of every committed document."""

    schema: Schema
    postings: dict[str, dict[str, list[Posting]]]
    stored_fields: dict[int, dict[str, list[Any]]]
    field_lengths: dict[str, dict[int, int]]
    sorted_terms: dict[str, list[str]]
    average_lengths: dict[str, float]

    @property
    def doc_count(self) -> int:
        return len(self.stored_fields)

    def get_document(self, doc_id: int) -> dict[str, list[Any]]:
        return self.stored_fields.get(doc_id, {})

    def get_postings(self, field_name: str, term: str) -> list[Posting]:
        """Return postings for a specific term in a field."""
        return self.postings.get(field_name, {}).get(term, [])

    def terms(self, field_name: str) -> list[str]:
        return self.sorted_terms.get(field_name, [])

    def terms_with_prefix(self, field_name: str, prefix: str, limit: int) -> list[str]:
        terms = self.terms(field_name)
        start = bisect.bisect_left(terms, prefix)
        expansions: list[str] = []
        for term in terms[start:]:
            if not term.startswith(prefix) or len(expansions) >= limit:
                break
            expansions.append(term)
        return expansions

    def doc_length(self, field_name: str, doc_id: int) -> int:
        return self.field_lengths.get(field_name, {}).get(doc_id, 0)

    def average_length(self, field_name: str) -> float:
        return self.average_lengths.get(field_name, 0.0)


class SegmentWriter:
    """Builds index segments from schema-aware documents."""

    def __init__(self, schema: Schema, registry: TokenizerRegistry) -> None:
        self.schema = schema
        self.registry = registry
        self._postings: MutableMapping[str, MutableMapping[str, MutableMapping[int, list[int]]]] = defaultdict(
            lambda: defaultdict(lambda: defaultdict(list))
        )
        self._field_lengths: MutableMapping[str, dict[int, int]] = defaultdict(dict)
        self._stored_fields: dict[int, dict[str, list[Any]]] = {}
        self._next_doc_id = 0

    def add_document(self, document: Mapping[str, Any]) -> int:
        doc_id = self._next_doc_id
        self._next_doc_id += 1

        stored: dict[str, list[Any]] = {}
        for schema_field in self.schema.fields:
            values = _as_values(document.get(schema_field.name))
            if not values:
                continue
            if schema_field.stored:
                stored[schema_field.name] = list(values)
            if not schema_field.indexed:
                continue
            tokens = self._analyze_field(schema_field, values)
            if not tokens:
                continue
            self._field_lengths[schema_field.name][doc_id] = len(tokens)
            for token in tokens:
                self._postings[schema_field.name][token.text][doc_id].append(token.position)

        self._stored_fields[doc_id] = stored
        return doc_id

    @property
    def pending_count(self) -> int:
        return len(self._stored_fields)

    def build(self) -> IndexSegment:
        frozen = {
            name: {
                term: _freeze_postings(by_doc, keep_positions=self._record_option(name) is not IndexRecordOption.BASIC)
                for term, by_doc in terms.items()
            }
            for name, terms in self._postings.items()
        }
        lengths = {name: dict(per_doc) for name, per_doc in self._field_lengths.items()}
        return IndexSegment(
            schema=self.schema,
            postings=frozen,
            stored_fields=dict(self._stored_fields),
            field_lengths=lengths,
            sorted_terms={name: sorted(terms) for name, terms in frozen.items()},
            average_lengths=average_field_lengths(lengths),
        )

    def _record_option(self, field_name: str) -> IndexRecordOption:
        schema_field = self.schema[field_name]
        if isinstance(schema_field, TextField):
            return schema_field.record_option
        return IndexRecordOption.BASIC

    def _analyze_field(self, schema_field: SchemaField, values: Sequence[Any]) -> list[Token]:
        if isinstance(schema_field, TextField):
            analyzer = self.registry.get(schema_field.tokenizer)
            tokens: list[Token] = []
            offset = 0
            for value in values:
                analyzed = analyzer(str(value))
                for token in analyzed:
                    token.position += offset
                tokens.extend(analyzed)
                if analyzed:
                    offset = tokens[-1].position + _VALUE_POSITION_GAP
            return tokens
        if isinstance(schema_field, NumericField):
            return [
                Token(text=str(value), position=idx, char_offset_from=0, char_offset_to=len(str(value)))
                for idx, value in enumerate(values)
            ]
        return []


class MemorySearchIndex(AbstractSearchIndex):
    """Reference index adapter holding one in-memory segment."""

    def __init__(
        self,
        schema: Schema,
        registry: TokenizerRegistry | None = None,
        *,
        tokenizer: str = PARAGRAPH_TOKENIZER,
    ) -> None:
        self.schema = schema
        self.registry = registry or default_registry()
        self._analyzer = self.registry.get(tokenizer)
        for text_field in schema.text_fields:
            self.registry.get(text_field.tokenizer)
        self._writer = SegmentWriter(schema, self.registry)
        self._segment: IndexSegment | None = None

    def tokenize(self, text: str) -> list[Token]:
        return self._analyzer(text)

    def add_document(self, document: Mapping[str, Any]) -> int:
        return self._writer.add_document(document)

    def commit(self) -> None:
        self._segment = self._writer.build()
        logger.info(
            "Committed %s index segment",
            self.schema.name,
            extra={"index": self.schema.name, "doc_count": self._segment.doc_count},
        )

    @property
    def doc_count(self) -> int:
        return self._segment.doc_count if self._segment else 0

    @property
    def is_ready(self) -> bool:
        return self._segment is not None

    async def search(self, query: QueryInput, *, top: int = 10, explain: bool = False) -> list[SearchHit]:
        segment = self._require_segment()
        self._validate(query)
        return await asyncio.to_thread(self._search_sync, segment, query, top, explain)

    async def search_terms(self, field: str, pattern: str) -> list[str]:
        segment = self._require_segment()
        self.schema.searchable_text_field(field)
        try:
            compiled = re.compile(pattern)
        except re.error as exc:
            raise SearchIndexError(f"Invalid term pattern {pattern!r}: {exc}") from exc
        return await asyncio.to_thread(self._match_terms, segment, field, compiled)

    def _require_segment(self) -> IndexSegment:
        if self._segment is None:
            raise IndexUnavailableError(f"Index '{self.schema.name}' has not been committed")
        return self._segment

    def _validate(self, query: QueryInput) -> None:
        if isinstance(query, RawQueryText):
            for field_name in query.fields:
                self.schema.searchable_text_field(field_name)
            return
        spec = query.spec
        needs_positions = isinstance(spec, (PhraseQuery, PhrasePrefixQuery)) and len(spec.terms) > 1
        self.schema.searchable_text_field(spec.field, needs_positions=needs_positions)

    @staticmethod
    def _match_terms(segment: IndexSegment, field: str, compiled: re.Pattern[str]) -> list[str]:
        return [term for term in segment.terms(field) if compiled.fullmatch(term)]

    def _search_sync(self, segment: IndexSegment, query: QueryInput, top: int, explain: bool) -> list[SearchHit]:
        if isinstance(query, CompiledQuery):
            scores = self._evaluate(segment, query.spec)
            kind = query.spec.kind
        else:
            scores = self._evaluate_raw(segment, query)
            kind = query.kind

        ranked = sorted(scores.items(), key=lambda item: (-item[1], item[0]))[: max(top, 0)]
        hits: list[SearchHit] = []
        for doc_id, score in ranked:
            document = orjson.dumps(segment.get_document(doc_id)).decode("utf-8")
            explanation = None
            if explain:
                explanation = orjson.dumps({"query": kind, "doc": doc_id, "value": score}).decode("utf-8")
            hits.append(SearchHit(score=score, document=document, explanation=explanation))
        return hits

    def _evaluate(self, segment: IndexSegment, spec: QuerySpec) -> dict[int, float]:
        if isinstance(spec, TermQuery):
            return self._score_terms(segment, spec.field, [spec.term])
        if isinstance(spec, FuzzyTermQuery):
            expansions = fuzzy_term_matches(
                spec.term,
                segment.terms(spec.field),
                max_distance=spec.max_distance,
                is_prefix=spec.is_prefix,
            )
            return self._score_terms(segment, spec.field, expansions)
        if isinstance(spec, PhraseQuery):
            return self._score_phrase(segment, spec.field, list(spec.terms))
        if isinstance(spec, PhrasePrefixQuery):
            *exact, last = spec.terms
            expansions = segment.terms_with_prefix(spec.field, last, spec.max_expansions)
            if not exact:
                return self._score_terms(segment, spec.field, expansions)
            return self._score_phrase_prefix(segment, spec.field, exact, expansions)
        raise SearchIndexError(f"Unsupported query kind: {getattr(spec, 'kind', type(spec).__name__)}")

    def _evaluate_raw(self, segment: IndexSegment, query: RawQueryText) -> dict[int, float]:
        terms = [token.text for token in self.tokenize(query.text)]
        scores: dict[int, float] = defaultdict(float)
        for field_name in query.fields:
            for doc_id, score in self._score_terms(segment, field_name, terms).items():
                scores[doc_id] += score
        return dict(scores)

    def _score_terms(self, segment: IndexSegment, field_name: str, terms: Iterable[str]) -> dict[int, float]:
        scores: dict[int, float] = defaultdict(float)
        avg_length = segment.average_length(field_name)
        for term in terms:
            postings = segment.get_postings(field_name, term)
            if not postings:
                continue
            idf = calculate_idf(len(postings), segment.doc_count)
            for posting in postings:
                doc_length = segment.doc_length(field_name, posting.doc_id)
                scores[posting.doc_id] += idf * bm25(posting.frequency, doc_length, avg_length)
        return dict(scores)

    @staticmethod
    def _phrase_ends(segment: IndexSegment, field_name: str, terms: Sequence[str]) -> dict[int, set[int]]:
        """Map each document holding ``terms`` consecutively to the positions of the last term."""
        first, *rest = terms
        ends = {posting.doc_id: set(posting.positions) for posting in segment.get_postings(field_name, first)}
        for term in rest:
            if not ends:
                break
            ends = _follow(ends, segment.get_postings(field_name, term))
        return ends

    def _phrase_idf(self, segment: IndexSegment, field_name: str, terms: Iterable[str]) -> float:
        return sum(calculate_idf(len(segment.get_postings(field_name, term)), segment.doc_count) for term in terms)

    def _score_phrase(self, segment: IndexSegment, field_name: str, terms: Sequence[str]) -> dict[int, float]:
        ends = self._phrase_ends(segment, field_name, terms)
        if not ends:
            return {}
        idf = self._phrase_idf(segment, field_name, terms)
        avg_length = segment.average_length(field_name)
        return {
            doc_id: idf * bm25(len(positions), segment.doc_length(field_name, doc_id), avg_length)
            for doc_id, positions in ends.items()
        }

    def _score_phrase_prefix(
        self,
        segment: IndexSegment,
        field_name: str,
        exact: Sequence[str],
        expansions: Iterable[str],
    ) -> dict[int, float]:
        # the exact words are matched once; each expansion only walks its own postings
        prefix_ends = self._phrase_ends(segment, field_name, exact)
        if not prefix_ends:
            return {}
        prefix_idf = self._phrase_idf(segment, field_name, exact)
        avg_length = segment.average_length(field_name)
        scores: dict[int, float] = {}
        for expansion in expansions:
            postings = segment.get_postings(field_name, expansion)
            idf = prefix_idf + calculate_idf(len(postings), segment.doc_count)
            for doc_id, positions in _follow(prefix_ends, postings).items():
                score = idf * bm25(len(positions), segment.doc_length(field_name, doc_id), avg_length)
                scores[doc_id] = max(scores.get(doc_id, 0.0), score)
        return scores


def build_memory_index(
    schema: Schema,
    documents: Iterable[Mapping[str, Any]],
    registry: TokenizerRegistry | None = None,
) -> MemorySearchIndex:
    """Create, fill and commit an in-memory index."""
    index = MemorySearchIndex(schema, registry)
    for document in documents:
        index.add_document(document)
    index.commit()
    return index


__all__ = ["IndexSegment", "MemorySearchIndex", "SegmentWriter", "build_memory_index"]

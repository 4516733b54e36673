"""Search service orchestration layer.

Ties the text pipeline to the indexes: query text is tokenized, shaped into a
query, run against the paragraph index, and every hit is assembled into a
display item with highlight ranges and rendered fragments. Typeahead goes to
the phrase index through ``TypeaheadCompleter``.
"""

from __future__ import annotations

import logging
from typing import Any

from austen_search.adapters.search_index import AbstractSearchIndex, SearchHit
from austen_search.config import Settings
from austen_search.corpus import build_paragraph_index, build_phrase_index, extract_phrases, load_paragraphs
from austen_search.domain.search import (
    FragmentPayload,
    HighlightRangePayload,
    SearchItem,
    SearchResponse,
    TypeaheadResponse,
)
from austen_search.observability.metrics import SEARCH_LATENCY, track_latency
from austen_search.observability.tracing import create_span
from austen_search.search.highlight import highlight, render_fragments
from austen_search.search.queries import CompiledQuery, build_query
from austen_search.search.results import DEFAULT_CLIP_LENGTH, assemble_item
from austen_search.search.typeahead import TypeaheadCompleter
from austen_search.timing import timed


logger = logging.getLogger(__name__)

PARAGRAPH_TEXT_FIELD = "text"


class SearchService:
    """High-level search and typeahead orchestration."""

    def __init__(
        self,
        index: AbstractSearchIndex,
        phrase_index: AbstractSearchIndex,
        *,
        field: str = PARAGRAPH_TEXT_FIELD,
        top: int = 10,
        max_distance: int = 0,
        clip_length: int = DEFAULT_CLIP_LENGTH,
        typeahead_limit: int = 10,
    ) -> None:
        """Initialize the service.

        Args:
            index: Paragraph index searched by ``search``
            phrase_index: Phrase dictionary index used for completions
            field: Paragraph text field queried and highlighted
            top: Maximum hits per search
            max_distance: Edit distance for single-word queries
            clip_length: Length of the clipped preview
            typeahead_limit: Maximum completions per request
        """
        self.index = index
        self.phrase_index = phrase_index
        self.field = field
        self.top = top
        self.max_distance = max_distance
        self.clip_length = clip_length
        self.completer = TypeaheadCompleter(phrase_index, limit=typeahead_limit)

    async def search(self, raw_query: str) -> SearchResponse:
        query_tokens: list[str] = []

        async def run() -> list[SearchHit]:
            query_tokens.extend(token.text for token in self.index.tokenize(raw_query))
            spec = build_query(query_tokens, self.field, max_distance=self.max_distance)
            if spec is None:
                return []
            attributes = {"search.query_kind": spec.kind, "search.term_count": len(query_tokens)}
            with (
                create_span("index.search", attributes=attributes),
                track_latency(SEARCH_LATENCY, index="paragraphs", operation="search"),
            ):
                return await self.index.search(CompiledQuery(spec), top=self.top)

        hits, elapsed_ms = await timed(run)
        items = [self._display_item(hit, raw_query) for hit in hits]
        logger.debug(
            "Search completed: %d results in %.2fms",
            len(items),
            elapsed_ms,
            extra={"query_tokens": len(query_tokens)},
        )
        return SearchResponse(time=elapsed_ms, items=items, query_tokens=query_tokens)

    async def typeahead(self, text: str) -> TypeaheadResponse:
        async def run() -> list[list[str]]:
            with (
                create_span("index.typeahead", attributes={"typeahead.length": len(text)}),
                track_latency(SEARCH_LATENCY, index="phrases", operation="typeahead"),
            ):
                return await self.completer.complete(text)

        completions, elapsed_ms = await timed(run)
        return TypeaheadResponse(time=elapsed_ms, items=completions)

    def health(self) -> dict[str, Any]:
        """Readiness and document counts of both indexes."""
        indexes = {
            "paragraphs": {"ready": self.index.is_ready, "documents": self.index.doc_count},
            "phrases": {"ready": self.phrase_index.is_ready, "documents": self.phrase_index.doc_count},
        }
        ready = all(entry["ready"] for entry in indexes.values())
        return {"status": "ok" if ready else "unavailable", "indexes": indexes}

    def _display_item(self, hit: SearchHit, raw_query: str) -> SearchItem:
        item = assemble_item(hit.score, hit.document, clip_length=self.clip_length)
        if not item.text:
            return item
        ranges = highlight(item.text, query=raw_query, prefix_last=True)
        return item.model_copy(
            update={
                "matches": [
                    HighlightRangePayload(
                        char_offset_from=text_range.char_offset_from,
                        char_offset_to=text_range.char_offset_to,
                        is_match=text_range.is_match,
                    )
                    for text_range in ranges
                ],
                "fragments": [
                    FragmentPayload(text=fragment.text, is_match=fragment.is_match, is_emphasis=fragment.is_emphasis)
                    for fragment in render_fragments(item.text, ranges)
                ],
            }
        )


def build_search_service(settings: Settings) -> SearchService:
    """Load the packed corpus and build both indexes (blocking)."""
    paragraphs = load_paragraphs(settings.corpus_dir, settings.get_books())
    index = build_paragraph_index(paragraphs)
    phrases = extract_phrases(
        (str(paragraph["text"]) for paragraph in paragraphs if paragraph.get("text")),
        settings.ngram_min_length,
        settings.ngram_max_length,
        max_workers=settings.phrase_workers,
    )
    phrase_index = build_phrase_index(phrases)
    logger.info(
        "Indexes built",
        extra={"paragraphs": index.doc_count, "phrases": phrase_index.doc_count},
    )
    return SearchService(
        index,
        phrase_index,
        top=settings.search_top,
        max_distance=settings.fuzzy_max_distance,
        clip_length=settings.clip_length,
        typeahead_limit=settings.typeahead_limit,
    )

"""Search-as-you-type completion over the phrase index.

The typed text is split into confirmed words and the partial word being
typed. Dictionary terms starting with the partial word are looked up in the
phrase index and get the user's casing back for the part they typed. When
there are confirmed words, a term is kept only if it follows them in some
indexed phrase, which takes one phrase-prefix query per request.
"""

from __future__ import annotations

from collections.abc import Iterable
import logging
import re

import orjson

from austen_search.adapters.search_index import AbstractSearchIndex
from austen_search.search.queries import CompiledQuery, PhrasePrefixQuery
from austen_search.search.segmenter import tokenize


logger = logging.getLogger(__name__)

DEFAULT_PHRASE_FIELD = "phrase"


def restore_case(candidate: str, typed: str) -> str:
    """Give ``candidate`` the casing the user typed for their common prefix.

    >>> restore_case("elizabeth", "ELiz")
    'ELizabeth'
    """
    common = 0
    for typed_char, candidate_char in zip(typed, candidate):
        if typed_char.lower() != candidate_char.lower():
            break
        common += 1
    return typed[:common] + candidate[common:]


def rank_completions(candidates: Iterable[str], query: str) -> list[str]:
    """Order candidates that literally start with ``query`` first, each group sorted.

    >>> rank_completions(["world", "apple", "woman"], "wo")
    ['woman', 'world', 'apple']
    """
    prefixed: list[str] = []
    others: list[str] = []
    for candidate in candidates:
        (prefixed if candidate.startswith(query) else others).append(candidate)
    return sorted(prefixed) + sorted(others)


def split_typed_query(text: str) -> tuple[list[str], str]:
    """Return the confirmed words and the partial last word of typed text.

    A trailing space completes the last word, leaving an empty partial word.
    """
    words = [token.text for token in tokenize(text)]
    if not words:
        return [], ""
    if text[-1:].isspace():
        return words, ""
    return words[:-1], words[-1]


class TypeaheadCompleter:
    """Completes typed text against the phrase dictionary index."""

    def __init__(self, index: AbstractSearchIndex, *, field: str = DEFAULT_PHRASE_FIELD, limit: int = 10) -> None:
        self.index = index
        self.field = field
        self.limit = limit

    async def complete(self, text: str) -> list[list[str]]:
        confirmed, partial = split_typed_query(text)
        if not partial:
            return []

        pattern = "^" + re.escape(partial.lower()) + ".*"
        candidates = await self.index.search_terms(self.field, pattern)
        if confirmed and candidates:
            following = await self._following_terms([word.lower() for word in confirmed], partial.lower(), candidates)
            candidates = [candidate for candidate in candidates if candidate in following]

        completions = {" ".join([*confirmed, restore_case(candidate, partial)]) for candidate in candidates}
        ranked = rank_completions(completions, " ".join([*confirmed, partial]))
        results = [completion.split(" ") for completion in ranked[: self.limit]]

        logger.debug(
            "Typeahead completed %d candidates",
            len(results),
            extra={"partial": partial, "confirmed": len(confirmed), "candidates": len(candidates)},
        )
        return results

    async def _following_terms(self, confirmed: list[str], partial: str, candidates: list[str]) -> set[str]:
        """Terms starting with ``partial`` that directly follow ``confirmed`` in some indexed phrase.

        One phrase-prefix query finds every phrase holding a completion; the
        completed word is read back from the stored phrase text.
        """
        query = PhrasePrefixQuery(terms=(*confirmed, partial), field=self.field, max_expansions=len(candidates))
        hits = await self.index.search(CompiledQuery(query), top=self.index.doc_count)

        size = len(confirmed)
        following: set[str] = set()
        for hit in hits:
            for phrase in orjson.loads(hit.document).get(self.field, []):
                words = [token.text for token in self.index.tokenize(phrase)]
                for start in range(len(words) - size):
                    if words[start : start + size] == confirmed and words[start + size].startswith(partial):
                        following.add(words[start + size])
        return following

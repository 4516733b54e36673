"""Match highlighting for stored paragraph text.

Highlighting happens in two passes:

1. ``build_ranges`` turns left-to-right, non-overlapping matches into ranges
   that cover the whole text exactly once, alternating gap and match ranges.
2. ``render_fragments`` walks the ranges and splits them on emphasis marks
   (``_``). Emphasis state carries across range boundaries, so a match inside
   an emphasised passage renders as both; the marks themselves are dropped.

Matches either come precomputed from the caller or are recomputed with
``find_matches``, which tokenizes the text and the query with the same word
tokenizer used by the index.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from austen_search.errors import MalformedMatchSpanError
from austen_search.search.models import Token
from austen_search.search.segmenter import EMPHASIS_MARK, tokenize


@dataclass(frozen=True)
class Match:
    """Character span of one match in a stored text field."""

    char_offset_from: int
    char_offset_to: int


@dataclass(frozen=True)
class HighlightRange:
    char_offset_from: int
    char_offset_to: int
    is_match: bool

    @property
    def length(self) -> int:
        return self.char_offset_to - self.char_offset_from


@dataclass(frozen=True)
class Fragment:
    """A display piece of text with its match and emphasis styling."""

    text: str
    is_match: bool
    is_emphasis: bool


def validate_matches(length: int, matches: Sequence[Match]) -> None:
    """Raise MalformedMatchSpanError unless matches are sorted, disjoint, non-empty and in bounds."""
    previous_end = 0
    for match in matches:
        start, end = match.char_offset_from, match.char_offset_to
        if start >= end:
            raise MalformedMatchSpanError(f"Empty or inverted match span [{start}, {end})")
        if start < 0 or end > length:
            raise MalformedMatchSpanError(f"Match span [{start}, {end}) outside text of length {length}")
        if start < previous_end:
            raise MalformedMatchSpanError(
                f"Match span [{start}, {end}) overlaps or precedes the previous match ending at {previous_end}"
            )
        previous_end = end


def build_ranges(length: int, matches: Sequence[Match]) -> list[HighlightRange]:
    """Partition ``[0, length)`` into alternating gap and match ranges.

    >>> build_ranges(10, [Match(2, 5)])
    [HighlightRange(char_offset_from=0, char_offset_to=2, is_match=False), \
HighlightRange(char_offset_from=2, char_offset_to=5, is_match=True), \
HighlightRange(char_offset_from=5, char_offset_to=10, is_match=False)]
    """
    if length <= 0:
        return []
    validate_matches(length, matches)

    ranges: list[HighlightRange] = []
    cursor = 0
    for match in matches:
        if match.char_offset_from > cursor:
            ranges.append(HighlightRange(cursor, match.char_offset_from, is_match=False))
        ranges.append(HighlightRange(match.char_offset_from, match.char_offset_to, is_match=True))
        cursor = match.char_offset_to
    if cursor < length:
        ranges.append(HighlightRange(cursor, length, is_match=False))
    return ranges


def render_fragments(text: str, ranges: Sequence[HighlightRange]) -> list[Fragment]:
    """Split ranges into fragments, toggling emphasis on every emphasis mark."""
    fragments: list[Fragment] = []
    emphasis = False
    for text_range in ranges:
        segment = text[text_range.char_offset_from : text_range.char_offset_to]
        pieces = segment.split(EMPHASIS_MARK)
        for idx, piece in enumerate(pieces):
            if idx > 0:
                emphasis = not emphasis
            if piece:
                fragments.append(Fragment(text=piece, is_match=text_range.is_match, is_emphasis=emphasis))
    return fragments


def _token_matches(text_token: Token, query_token: Token, *, prefix: bool) -> bool:
    candidate = text_token.text.lower()
    wanted = query_token.text.lower()
    if prefix:
        return candidate.startswith(wanted)
    return candidate == wanted


def scan_token_matches(
    text_tokens: Sequence[Token],
    query_tokens: Sequence[Token],
    *,
    prefix_last: bool = False,
) -> list[Match]:
    """Greedy left-to-right scan for the query token sequence.

    A hit consumes its whole window, so matches never overlap.
    """
    window = len(query_tokens)
    if window == 0:
        return []

    matches: list[Match] = []
    idx = 0
    while idx + window <= len(text_tokens):
        hit = all(
            _token_matches(
                text_tokens[idx + offset],
                query_token,
                prefix=prefix_last and offset == window - 1,
            )
            for offset, query_token in enumerate(query_tokens)
        )
        if hit:
            matches.append(Match(text_tokens[idx].char_offset_from, text_tokens[idx + window - 1].char_offset_to))
            idx += window
        else:
            idx += 1
    return matches


def find_matches(text: str, query: str, *, prefix_last: bool = False) -> list[Match]:
    """Find every non-overlapping occurrence of the query's words in ``text``.

    >>> find_matches("a a a", "a a")
    [Match(char_offset_from=0, char_offset_to=3)]
    """
    return scan_token_matches(tokenize(text), tokenize(query), prefix_last=prefix_last)


def highlight(
    text: str,
    *,
    query: str | None = None,
    matches: Sequence[Match] | None = None,
    prefix_last: bool = False,
) -> list[HighlightRange]:
    """Return covering ranges for ``text`` from precomputed matches or a query."""
    if matches is None:
        matches = find_matches(text, query or "", prefix_last=prefix_last)
    return build_ranges(len(text), matches)

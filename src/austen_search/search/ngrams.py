"""N-gram extraction for the typeahead phrase dictionary."""

from __future__ import annotations

from collections.abc import Sequence

from austen_search.search.segmenter import split_sentences, tokenize_sentence


def ngrams(tokens: Sequence[str], min_length: int, max_length: int) -> list[list[str]]:
    """Return every contiguous window of each length in ``[min_length, max_length]``.

    Windows are grouped by length, shortest first, and keep token order. No
    deduplication happens here.

    >>> ngrams(["a", "b", "c"], 1, 2)
    [['a'], ['b'], ['c'], ['a', 'b'], ['b', 'c']]
    """
    result: list[list[str]] = []
    for length in range(max(min_length, 1), max_length + 1):
        for start in range(len(tokens) - length + 1):
            result.append(list(tokens[start : start + length]))
    return result


def sentence_phrases(text: str, min_length: int = 1, max_length: int = 3) -> set[str]:
    """Collect the distinct space-joined n-gram phrases of every sentence in ``text``."""
    phrases: set[str] = set()
    for sentence in split_sentences(text):
        words = tokenize_sentence(sentence)
        phrases.update(" ".join(window) for window in ngrams(words, min_length, max_length))
    return phrases

"""BM25 weights for the in-memory index.

The reference index only promises a stable, monotone ordering, so these are
the textbook formulas with the usual constants.
"""

from __future__ import annotations

from collections.abc import Mapping
import math


BM25_K1 = 1.2
BM25_B = 0.75
IDF_FLOOR = 1e-6


def average_field_lengths(field_lengths: Mapping[str, Mapping[int, int]]) -> dict[str, float]:
    """Mean token count per field over the documents that have the field."""
    return {
        field_name: sum(lengths.values()) / len(lengths) if lengths else 0.0
        for field_name, lengths in field_lengths.items()
    }


def calculate_idf(doc_freq: int, total_docs: int) -> float:
    """Probabilistic IDF plus one, kept above zero.

    Words found in most paragraphs ("the", "and") get a tiny positive weight
    instead of a negative one.
    """
    if total_docs <= 0:
        return 0.0
    df = min(max(doc_freq, 0), total_docs)
    return max(math.log((total_docs - df + 0.5) / (df + 0.5)) + 1.0, IDF_FLOOR)


def bm25(tf: int, doc_length: int, avg_doc_length: float, *, k1: float = BM25_K1, b: float = BM25_B) -> float:
    """Saturated term frequency normalized by field length, without IDF."""
    if tf <= 0:
        return 0.0
    length_ratio = doc_length / avg_doc_length if avg_doc_length > 0 else 1.0
    return tf * (k1 + 1) / (tf + k1 * (1 - b + b * length_ratio))

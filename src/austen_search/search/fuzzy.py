"""Edit-distance matching behind fuzzy term queries.

A fuzzy term query matches dictionary terms within ``max_distance`` edits of
the query term. With ``is_prefix`` the query term only has to be close to
some prefix of the dictionary term, which is what search-as-you-type needs:
"elizab" with distance 0 matches "elizabeth".
"""

from __future__ import annotations

from collections.abc import Iterable


def _next_row(previous: list[int], row_char: str, columns: str) -> list[int]:
    current = [previous[0] + 1]
    for index, column_char in enumerate(columns, start=1):
        current.append(
            min(
                previous[index] + 1,
                current[index - 1] + 1,
                previous[index - 1] + (row_char != column_char),
            )
        )
    return current


def levenshtein_distance(a: str, b: str, max_distance: int | None = None) -> int:
    """Edit distance between ``a`` and ``b``.

    With ``max_distance`` the result is capped at ``max_distance + 1`` and the
    computation stops as soon as every cell of a row reaches the cap.

        >>> levenshtein_distance("kitten", "sitting")
        3
    """
    if len(a) < len(b):
        a, b = b, a
    cap = len(a) + 1 if max_distance is None else max_distance + 1
    if len(a) - len(b) >= cap:
        return cap

    row = list(range(len(b) + 1))
    for char in a:
        row = _next_row(row, char, b)
        if min(row) >= cap:
            return cap
    return min(row[-1], cap)


def prefix_distance(query: str, term: str, max_distance: int) -> int:
    """Smallest edit distance between ``query`` and any prefix of ``term``.

    Returns ``max_distance + 1`` when no prefix is close enough.
    """
    cap = max_distance + 1
    if max_distance <= 0:
        return 0 if term.startswith(query) else cap

    # rows walk the term; the last column is the distance to the prefix read so far
    row = list(range(len(query) + 1))
    best = row[-1]
    for char in term:
        if best == 0 or min(row) >= cap:
            break
        row = _next_row(row, char, query)
        best = min(best, row[-1])
    return min(best, cap)


def fuzzy_term_matches(
    query: str,
    vocabulary: Iterable[str],
    *,
    max_distance: int = 0,
    is_prefix: bool = False,
) -> list[str]:
    """Return the vocabulary terms matched by a fuzzy term query, in vocabulary order."""
    if not query:
        return []
    if is_prefix:
        return [term for term in vocabulary if prefix_distance(query, term, max_distance) <= max_distance]
    return [term for term in vocabulary if levenshtein_distance(query, term, max_distance) <= max_distance]

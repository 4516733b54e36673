"""Tests for edit-distance term matching."""

import pytest

from austen_search.search.fuzzy import fuzzy_term_matches, levenshtein_distance, prefix_distance


@pytest.mark.unit
class TestLevenshteinDistance:
    def test_identical_strings(self):
        assert levenshtein_distance("emma", "emma") == 0

    def test_empty_strings(self):
        assert levenshtein_distance("", "") == 0
        assert levenshtein_distance("abc", "") == 3

    def test_multiple_edits(self):
        assert levenshtein_distance("kitten", "sitting") == 3

    def test_early_exit(self):
        assert levenshtein_distance("elizabeth", "eliza", max_distance=1) == 2


@pytest.mark.unit
class TestFuzzyTermMatches:
    def test_prefix_with_zero_distance(self):
        assert prefix_distance("elizab", "elizabeth", 0) == 0
        assert fuzzy_term_matches("eliz", ["elinor", "elizabeth", "eliza"], is_prefix=True) == ["elizabeth", "eliza"]

    def test_prefix_with_typo(self):
        assert fuzzy_term_matches("elizb", ["elizabeth", "emma"], max_distance=1, is_prefix=True) == ["elizabeth"]

    def test_whole_term_distance(self):
        assert fuzzy_term_matches("emna", ["emma", "anna", "emmaline"], max_distance=1) == ["emma"]

    def test_empty_query(self):
        assert fuzzy_term_matches("", ["emma"], is_prefix=True) == []

"""Tests for typeahead completion."""

import time

import pytest

from austen_search.corpus import build_phrase_index
from austen_search.search.typeahead import (
    TypeaheadCompleter,
    rank_completions,
    restore_case,
    split_typed_query,
)


@pytest.mark.unit
class TestRestoreCase:
    def test_typed_prefix_casing_wins(self):
        assert restore_case("elizabeth", "ELiz") == "ELizabeth"

    def test_empty_typed_text(self):
        assert restore_case("elizabeth", "") == "elizabeth"

    @pytest.mark.parametrize("candidate,typed", [("elizabeth", "ELiz"), ("emma", "EMMALINE"), ("darcy", "Dx")])
    def test_idempotent(self, candidate, typed):
        once = restore_case(candidate, typed)
        assert restore_case(once, typed) == once

    def test_stops_at_first_difference(self):
        assert restore_case("darcy", "Dx") == "Darcy"


@pytest.mark.unit
class TestRankCompletions:
    def test_prefix_partition_first(self):
        assert rank_completions(["world", "apple", "woman"], "wo") == ["woman", "world", "apple"]

    def test_prefix_check_is_case_sensitive(self):
        assert rank_completions(["Woman", "wolf"], "wo") == ["wolf", "Woman"]


@pytest.mark.unit
class TestSplitTypedQuery:
    def test_confirmed_and_partial(self):
        assert split_typed_query("Mr. Dar") == (["Mr."], "Dar")

    def test_trailing_space_completes_last_word(self):
        assert split_typed_query("Mr. Darcy ") == (["Mr.", "Darcy"], "")

    def test_empty(self):
        assert split_typed_query("") == ([], "")
        assert split_typed_query("   ") == ([], "")


@pytest.mark.unit
class TestTypeaheadCompleter:
    @pytest.mark.asyncio
    async def test_single_word_completions_are_ranked(self):
        completer = TypeaheadCompleter(build_phrase_index({"world", "apple", "woman"}))

        assert await completer.complete("wo") == [["woman"], ["world"]]
        assert await completer.complete("Wo") == [["Woman"], ["World"]]

    @pytest.mark.asyncio
    async def test_limit(self):
        completer = TypeaheadCompleter(build_phrase_index({"world", "woman"}), limit=1)
        assert await completer.complete("wo") == [["woman"]]

    @pytest.mark.asyncio
    async def test_confirmed_terms_must_form_a_phrase(self, phrase_index):
        completer = TypeaheadCompleter(phrase_index)

        assert await completer.complete("Mr. Dar") == [["Mr.", "Darcy"]]
        assert await completer.complete("Mrs. Dar") == []

    @pytest.mark.asyncio
    async def test_no_partial_word_no_completions(self, phrase_index):
        completer = TypeaheadCompleter(phrase_index)

        assert await completer.complete("") == []
        assert await completer.complete("Mr. Darcy ") == []

    @pytest.mark.asyncio
    async def test_regex_characters_are_escaped(self, phrase_index):
        assert await TypeaheadCompleter(phrase_index).complete("(") == []

    @pytest.mark.asyncio
    async def test_common_confirmed_word_runs_one_phrase_query(self, monkeypatch):
        phrases = {f"the n{i:05d}" for i in range(5000)} | {f"a{i:05d}" for i in range(1000)} | {"the apple"}
        index = build_phrase_index(phrases)
        queries = []
        search = index.search

        async def counting_search(query, **kwargs):
            queries.append(query)
            return await search(query, **kwargs)

        monkeypatch.setattr(index, "search", counting_search)

        started = time.perf_counter()
        completions = await TypeaheadCompleter(index).complete("the a")
        elapsed = time.perf_counter() - started

        assert completions == [["the", "apple"]]
        assert len(queries) == 1
        assert elapsed < 1.0

    @pytest.mark.asyncio
    async def test_completion_inside_a_longer_phrase(self):
        completer = TypeaheadCompleter(build_phrase_index({"said Mr. Darcy", "Mr. Bennet"}))

        assert await completer.complete("mr. d") == [["mr.", "darcy"]]

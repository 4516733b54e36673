"""Unit tests for SearchService."""

import pytest

from austen_search.adapters.memory_index import MemorySearchIndex
from austen_search.config import Settings
from austen_search.errors import CorpusError, IndexUnavailableError
from austen_search.search.schema import create_paragraph_schema
from austen_search.service_layer.search_service import SearchService, build_search_service


@pytest.mark.unit
class TestSearch:
    @pytest.mark.asyncio
    async def test_single_word_search(self, search_service):
        response = await search_service.search("darcy")

        assert response.query_tokens == ["darcy"]
        assert response.time >= 0
        assert len(response.items) == 1
        item = response.items[0]
        assert item.title == "Pride and Prejudice"
        assert item.citation == "Pride and Prejudice, Ch. 3"
        assert item.icon == "pride-and-prejudice.jpg"
        assert len([match for match in item.matches if match.is_match]) == 2

    @pytest.mark.asyncio
    async def test_matches_cover_the_text(self, search_service):
        item = (await search_service.search("darcy")).items[0]

        assert item.matches[0].char_offset_from == 0
        assert item.matches[-1].char_offset_to == len(item.text)
        assert "".join(fragment.text for fragment in item.fragments) == item.text

    @pytest.mark.asyncio
    async def test_search_as_you_type_phrase(self, search_service):
        response = await search_service.search("Mr. Dar")

        assert response.query_tokens == ["mr.", "dar"]
        assert [item.title for item in response.items] == ["Pride and Prejudice"]
        matched = [fragment.text for fragment in response.items[0].fragments if fragment.is_match]
        assert matched == ["Mr. Darcy", "Mr. Darcy"]

    @pytest.mark.asyncio
    async def test_single_word_is_a_prefix(self, search_service):
        response = await search_service.search("Wood")
        assert [item.title for item in response.items] == ["Emma", "Emma"]

    @pytest.mark.asyncio
    async def test_emphasis_fragment(self, search_service):
        response = await search_service.search("very")
        fragments = [fragment for item in response.items for fragment in item.fragments]

        assert any(fragment.text == "very" and fragment.is_match and fragment.is_emphasis for fragment in fragments)

    @pytest.mark.asyncio
    async def test_no_terms(self, search_service):
        response = await search_service.search("  ,  ")

        assert response.items == []
        assert response.query_tokens == []

    @pytest.mark.asyncio
    async def test_fuzzy_distance(self, paragraph_index, phrase_index):
        strict = SearchService(paragraph_index, phrase_index)
        fuzzy = SearchService(paragraph_index, phrase_index, max_distance=1)

        assert (await strict.search("darcey")).items == []
        assert [item.title for item in (await fuzzy.search("darcey")).items] == ["Pride and Prejudice"]

    @pytest.mark.asyncio
    async def test_top_and_clip(self, paragraph_index, phrase_index):
        service = SearchService(paragraph_index, phrase_index, top=1, clip_length=20)
        response = await service.search("a")

        assert len(response.items) == 1
        assert len(response.items[0].clip) <= 20

    @pytest.mark.asyncio
    async def test_uncommitted_index(self, phrase_index):
        service = SearchService(MemorySearchIndex(create_paragraph_schema()), phrase_index)

        with pytest.raises(IndexUnavailableError):
            await service.search("emma")


@pytest.mark.unit
class TestTypeahead:
    @pytest.mark.asyncio
    async def test_completions(self, search_service):
        response = await search_service.typeahead("Mr. Dar")

        assert response.items == [["Mr.", "Darcy"]]
        assert response.time >= 0

    @pytest.mark.asyncio
    async def test_limit(self, paragraph_index, phrase_index):
        service = SearchService(paragraph_index, phrase_index, typeahead_limit=1)
        assert len((await service.typeahead("w")).items) == 1


@pytest.mark.unit
class TestHealth:
    def test_ready(self, search_service):
        health = search_service.health()

        assert health["status"] == "ok"
        assert health["indexes"]["paragraphs"] == {"ready": True, "documents": 4}
        assert health["indexes"]["phrases"]["ready"] is True

    def test_unavailable(self, phrase_index):
        service = SearchService(MemorySearchIndex(create_paragraph_schema()), phrase_index)
        assert service.health()["status"] == "unavailable"


@pytest.mark.unit
class TestBuildSearchService:
    @pytest.mark.asyncio
    async def test_builds_from_packed_corpus(self, packed_corpus):
        service = build_search_service(Settings(corpus_dir=packed_corpus, search_top=1))

        assert service.index.doc_count == 4
        assert service.phrase_index.doc_count > 0
        assert len((await service.search("a")).items) == 1

    def test_missing_corpus(self, tmp_path):
        with pytest.raises(CorpusError):
            build_search_service(Settings(corpus_dir=tmp_path))

"""Shared test fixtures and configuration."""

from pathlib import Path

import orjson
import pytest

from austen_search.corpus import build_paragraph_index, build_phrase_index, extract_phrases
from austen_search.service_layer.search_service import SearchService


# Complete test environment that overrides every setting read from the environment
TEST_ENV = {
    "CORPUS_DIR": "data/by-paragraph",
    "BOOKS": "emma,pride-and-prejudice",
    "HOST": "127.0.0.1",
    "PORT": "5174",
    "LOG_LEVEL": "info",
    "LOG_JSON": "false",
    "SEARCH_TOP": "10",
    "TYPEAHEAD_LIMIT": "10",
    "FUZZY_MAX_DISTANCE": "0",
    "NGRAM_MIN_LENGTH": "1",
    "NGRAM_MAX_LENGTH": "3",
    "CLIP_LENGTH": "80",
    "CORS_ORIGINS": "http://localhost:5173",
    "OTLP_ENDPOINT": "",
    "PHRASE_WORKERS": "1",
}

EMMA = {
    "title": "Emma",
    "author": "Jane Austen",
    "url": "https://www.gutenberg.org/ebooks/158",
    "year": 1815,
}

PRIDE_AND_PREJUDICE = {
    "title": "Pride and Prejudice",
    "author": "Jane Austen",
    "url": "https://www.gutenberg.org/ebooks/1342",
    "year": 1813,
}

PARAGRAPHS = [
    {
        "_id": 0,
        **EMMA,
        "volume": 1,
        "chapter": "1",
        "paragraph": 0,
        "text": (
            "Emma Woodhouse, handsome, clever, and rich, with a comfortable home and happy "
            "disposition, seemed to unite some of the best blessings of existence."
        ),
    },
    {
        "_id": 1,
        **EMMA,
        "volume": 1,
        "chapter": "1",
        "paragraph": 1,
        "text": "Mrs. Weston was a _very_ good woman. Mr. Woodhouse was fond of her.",
    },
    {
        "_id": 2,
        **PRIDE_AND_PREJUDICE,
        "chapter": "1",
        "paragraph": 0,
        "text": (
            "It is a truth universally acknowledged, that a single man in possession of a good "
            "fortune, must be in want of a wife."
        ),
    },
    {
        "_id": 3,
        **PRIDE_AND_PREJUDICE,
        "chapter": "3",
        "paragraph": 0,
        "text": "Mr. Darcy soon drew the attention of the room by his fine, tall person. Mr. Darcy danced only once.",
    },
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Pin every setting so a developer's environment or .env never leaks into tests."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def paragraphs() -> list[dict]:
    return [dict(paragraph) for paragraph in PARAGRAPHS]


@pytest.fixture
def paragraph_index(paragraphs):
    return build_paragraph_index(paragraphs)


@pytest.fixture
def phrase_index(paragraphs):
    return build_phrase_index(extract_phrases(paragraph["text"] for paragraph in paragraphs))


@pytest.fixture
def search_service(paragraph_index, phrase_index) -> SearchService:
    return SearchService(paragraph_index, phrase_index)


@pytest.fixture
def packed_corpus(tmp_path: Path, paragraphs) -> Path:
    """Packed corpus directory holding emma.json and pride-and-prejudice.json."""
    corpus_dir = tmp_path / "by-paragraph"
    corpus_dir.mkdir()
    by_book = {"emma": paragraphs[:2], "pride-and-prejudice": paragraphs[2:]}
    for book, records in by_book.items():
        (corpus_dir / f"{book}.json").write_bytes(orjson.dumps(records))
    return corpus_dir

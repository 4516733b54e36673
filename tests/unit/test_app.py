from __future__ import annotations

import pytest
from starlette.testclient import TestClient

from austen_search.adapters.memory_index import MemorySearchIndex
from austen_search.app import create_app
from austen_search.config import Settings
from austen_search.errors import CorpusError
from austen_search.search.schema import create_paragraph_schema
from austen_search.service_layer.search_service import SearchService


@pytest.fixture
def client(search_service):
    with TestClient(create_app(Settings(), search_service=search_service)) as test_client:
        yield test_client


@pytest.mark.unit
class TestSearchEndpoint:
    def test_search_returns_camel_case_items(self, client):
        response = client.get("/search/", params={"q": "darcy"})

        assert response.status_code == 200
        body = response.json()
        assert body["queryTokens"] == ["darcy"]
        (item,) = body["items"]
        assert item["title"] == "Pride and Prejudice"
        assert item["citation"] == "Pride and Prejudice, Ch. 3"
        assert {"charOffsetFrom", "charOffsetTo", "isMatch"} <= item["matches"][0].keys()
        assert {"text", "isMatch", "isEmphasis"} <= item["fragments"][0].keys()

    @pytest.mark.parametrize("params", [{}, {"q": ""}, {"q": "   "}])
    def test_blank_query_is_empty(self, client, params):
        response = client.get("/search/", params=params)

        assert response.status_code == 200
        assert response.json() == {"time": 0.0, "items": [], "queryTokens": []}

    def test_uncommitted_index_is_unavailable(self, phrase_index):
        service = SearchService(MemorySearchIndex(create_paragraph_schema()), phrase_index)
        with TestClient(create_app(Settings(), search_service=service)) as client:
            response = client.get("/search/", params={"q": "emma"})

        assert response.status_code == 503
        assert "not been committed" in response.json()["error"]

    def test_index_failure_is_server_error(self, phrase_index):
        service = SearchService(phrase_index, phrase_index)
        with TestClient(create_app(Settings(), search_service=service)) as client:
            response = client.get("/search/", params={"q": "emma"})

        assert response.status_code == 500
        assert response.json() == {"error": "Unknown field 'text': not in schema"}


@pytest.mark.unit
class TestTypeaheadEndpoint:
    def test_completions(self, client):
        response = client.get("/typeahead/", params={"q": "Mr. Dar"})

        assert response.status_code == 200
        assert response.json()["items"] == [["Mr.", "Darcy"]]

    def test_blank_query(self, client):
        assert client.get("/typeahead/").json() == {"time": 0.0, "items": []}


@pytest.mark.unit
class TestOperationalEndpoints:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["indexes"]["paragraphs"] == {"ready": True, "documents": 4}

    def test_metrics(self, client):
        client.get("/search/", params={"q": "darcy"})
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "austen_requests_total" in response.text
        assert 'austen_index_document_count{index="paragraphs"} 4.0' in response.text

    def test_cors(self, client):
        response = client.get("/search/", params={"q": "emma"}, headers={"Origin": "http://localhost:5173"})
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"

    def test_search_methods(self, client):
        assert client.post("/search/", params={"q": "emma"}).status_code == 405


@pytest.mark.unit
class TestLifespan:
    def test_without_service_requests_are_unavailable(self):
        client = TestClient(create_app(Settings()))

        assert client.get("/search/", params={"q": "emma"}).status_code == 503
        assert client.get("/health").status_code == 503

    def test_startup_builds_indexes(self, packed_corpus):
        app = create_app(Settings(corpus_dir=packed_corpus))
        with TestClient(app) as client:
            response = client.get("/search/", params={"q": "Mr. Dar"})

        assert app.state.search_service.index.doc_count == 4
        assert [item["title"] for item in response.json()["items"]] == ["Pride and Prejudice"]

    def test_startup_fails_without_corpus(self, tmp_path):
        with pytest.raises(CorpusError), TestClient(create_app(Settings(corpus_dir=tmp_path))):
            pass

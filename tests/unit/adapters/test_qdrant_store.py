"""
Unit tests for QdrantVectorStoreAdapter using httpx.MockTransport.
"""

import json

import httpx
import pytest

from vector_search.adapters.vector_store.qdrant_store import QdrantVectorStoreAdapter
from vector_search.core.domain.exceptions import VectorStoreError
from vector_search.core.domain.value_objects.embedding import EmbeddingVector


def make_store(handler, api_key="qdrant-key") -> QdrantVectorStoreAdapter:
    return QdrantVectorStoreAdapter(
        url="http://qdrant.test:6333/",
        api_key=api_key,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture
def embedding() -> EmbeddingVector:
    return EmbeddingVector(values=[0.1, 0.2, 0.3], model_name="test-model", dimensions=3)


class TestListCollections:

    async def test_returns_names(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={
                "result": {"collections": [{"name": "docs"}, {"name": "code"}]},
                "status": "ok",
            })

        store = make_store(handler)

        assert await store.list_collections() == ["docs", "code"]
        assert requests[0].method == "GET"
        assert str(requests[0].url) == "http://qdrant.test:6333/collections"
        assert requests[0].headers["api-key"] == "qdrant-key"
        await store.aclose()

    async def test_no_api_key_header_for_local_store(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = request.headers
            return httpx.Response(200, json={"result": {"collections": []}})

        store = make_store(handler, api_key=None)

        assert await store.list_collections() == []
        assert "api-key" not in seen["headers"]

    async def test_http_error_raises_vector_store_error(self):
        store = make_store(lambda request: httpx.Response(401, text="Unauthorized"))

        with pytest.raises(VectorStoreError, match="401"):
            await store.list_collections()

    async def test_connection_error_raises_vector_store_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        store = make_store(handler)

        with pytest.raises(VectorStoreError, match="connection refused"):
            await store.list_collections()

    async def test_unexpected_body_raises_vector_store_error(self):
        store = make_store(lambda request: httpx.Response(200, json={"status": "ok"}))

        with pytest.raises(VectorStoreError, match="Unexpected Qdrant response"):
            await store.list_collections()


class TestSearch:

    async def test_sends_search_body_and_parses_points(self, embedding):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={
                "result": [
                    {"id": 42, "score": 0.91, "payload": {"text": "hello"}, "version": 3},
                    {"id": "5c56c793-69f3-4fbf-87e6-c4bf54c28c26", "score": 0.5, "payload": None},
                ],
                "status": "ok",
            })

        store = make_store(handler)

        results = await store.search("docs", embedding, limit=5, score_threshold=0.4, with_payload=True)

        request = requests[0]
        assert request.method == "POST"
        assert request.url.path == "/collections/docs/points/search"
        assert json.loads(request.content) == {
            "vector": [0.1, 0.2, 0.3],
            "limit": 5,
            "score_threshold": 0.4,
            "with_payload": True,
        }
        assert [r.id for r in results] == ["42", "5c56c793-69f3-4fbf-87e6-c4bf54c28c26"]
        assert results[0].score == 0.91
        assert results[0].payload == {"text": "hello"}
        assert results[1].payload is None
        assert all(r.collection is None for r in results)

    async def test_collection_name_is_url_encoded(self, embedding):
        paths = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.raw_path)
            return httpx.Response(200, json={"result": []})

        store = make_store(handler)

        await store.search("my docs/v2", embedding, limit=1, score_threshold=0.0)

        assert paths[0] == b"/collections/my%20docs%2Fv2/points/search"

    async def test_missing_collection_raises(self, embedding):
        store = make_store(lambda request: httpx.Response(
            404, json={"status": {"error": "Not found: Collection `gone` doesn't exist!"}}
        ))

        with pytest.raises(VectorStoreError, match="404"):
            await store.search("gone", embedding, limit=5, score_threshold=0.4)

"""
Shared pytest fixtures for all tests.

This module provides reusable fixtures for:
- Sample settings bundles and search configuration
- Mock services (embedding, vector store, result publisher)
- A VectorSearchUseCase wired to the mocks
"""

from typing import Dict, List
from unittest.mock import AsyncMock

import pytest

from vector_search.core.domain.entities.search import SearchRequest, SearchResult
from vector_search.core.domain.entities.settings_bundle import (
    ProviderSettings, SearchConfig, SettingsBundle, VectorStoreSettings
)
from vector_search.core.domain.value_objects.embedding import EmbeddingVector
from vector_search.core.ports.embedding_service import EmbeddingService
from vector_search.core.ports.result_publisher import ResultPublisher
from vector_search.core.ports.vector_store import VectorStore
from vector_search.core.use_cases.vector_search import VectorSearchUseCase


TEST_DIMENSIONS = 4


# ============================================================================
# SAMPLE SETTINGS
# ============================================================================

@pytest.fixture
def provider_settings() -> ProviderSettings:
    """Complete embedding provider settings."""
    return ProviderSettings(
        endpoint="https://embeddings.test/v1",
        api_key="sk-test",
        is_configured=True,
    )


@pytest.fixture
def vector_store_settings() -> VectorStoreSettings:
    """Environment-fixed vector store."""
    return VectorStoreSettings(url="http://qdrant.test:6333", api_key="qdrant-key")


@pytest.fixture
def settings_bundle(provider_settings: ProviderSettings) -> SettingsBundle:
    """Per-call settings carrying only the embedding provider."""
    return SettingsBundle(embedding_provider=provider_settings)


@pytest.fixture
def search_config(vector_store_settings: VectorStoreSettings) -> SearchConfig:
    """Search configuration with a small embedding dimensionality."""
    return SearchConfig(
        embedding_model="test-model",
        embedding_dimensions=TEST_DIMENSIONS,
        vector_store=vector_store_settings,
    )


@pytest.fixture
def make_request(settings_bundle: SettingsBundle):
    """Factory for search requests using the default settings bundle."""
    def _make(collection_names=("a", "b"), **overrides) -> SearchRequest:
        values = dict(
            query="foo",
            collection_names=collection_names,
            limit=5,
            score_threshold=0.4,
            with_payload=True,
            settings=settings_bundle,
        )
        values.update(overrides)
        return SearchRequest(**values)
    return _make


# ============================================================================
# SAMPLE DATA
# ============================================================================

@pytest.fixture
def query_embedding() -> EmbeddingVector:
    return EmbeddingVector(values=[0.1, 0.2, 0.3, 0.4], model_name="test-model", dimensions=TEST_DIMENSIONS)


@pytest.fixture
def collection_hits() -> Dict[str, List[SearchResult]]:
    """Hits per collection; 'b' scores higher than 'a' on purpose."""
    return {
        "a": [
            SearchResult(id="a1", score=0.55, payload={"text": "alpha one"}),
            SearchResult(id="a2", score=0.45, payload={"text": "alpha two"}),
        ],
        "b": [
            SearchResult(id="b1", score=0.95, payload={"text": "beta one"}),
        ],
        "c": [],
    }


# ============================================================================
# MOCK SERVICES
# ============================================================================

@pytest.fixture
def mock_embedding_service(query_embedding: EmbeddingVector) -> EmbeddingService:
    """Mock embedding service returning a fixed embedding."""
    service = AsyncMock(spec=EmbeddingService)
    service.generate_embedding.return_value = query_embedding
    return service


@pytest.fixture
def mock_vector_store(collection_hits) -> VectorStore:
    """Mock vector store holding collections 'a', 'b' and 'c'."""
    store = AsyncMock(spec=VectorStore)
    store.list_collections.return_value = ["a", "b", "c"]

    async def search(collection_name, query_embedding, limit, score_threshold, with_payload=True):
        return list(collection_hits.get(collection_name, []))[:limit]

    store.search.side_effect = search
    return store


@pytest.fixture
def mock_result_publisher() -> ResultPublisher:
    return AsyncMock(spec=ResultPublisher)


@pytest.fixture
def embedding_service_factory(mock_embedding_service):
    """Records every (provider, model) the use case asks for."""
    calls = []

    def factory(provider, model_name):
        calls.append((provider, model_name))
        return mock_embedding_service

    factory.calls = calls
    return factory


@pytest.fixture
def vector_store_factory(mock_vector_store):
    """Records every vector store settings object the use case asks for."""
    calls = []

    def factory(store_settings):
        calls.append(store_settings)
        return mock_vector_store

    factory.calls = calls
    return factory


@pytest.fixture
def vector_search_use_case(
    embedding_service_factory,
    vector_store_factory,
    search_config,
    mock_result_publisher,
) -> VectorSearchUseCase:
    """VectorSearchUseCase instance with mocks"""
    return VectorSearchUseCase(
        embedding_service_factory=embedding_service_factory,
        vector_store_factory=vector_store_factory,
        config=search_config,
        result_publisher=mock_result_publisher,
    )

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from ..domain.entities.search import SearchRequest, SearchResult, SearchStage
from ..domain.entities.settings_bundle import (
    ProviderSettings, SearchConfig, SettingsBundle, VectorStoreSettings
)
from ..domain.exceptions import (
    ConfigurationError, DomainException, EmbeddingDimensionError,
    NoValidCollectionsError, UpstreamCallError
)
from ..domain.value_objects.embedding import EmbeddingVector
from ..ports.embedding_service import EmbeddingService
from ..ports.result_publisher import ResultPublisher
from ..ports.vector_store import VectorStore
from ..utils.connection_cache import ConnectionCache
from .collection_registry import CollectionRegistry

logger = logging.getLogger(__name__)

SEARCH_RESULT_EVENT = "onSearchResult"

EmbeddingServiceFactory = Callable[[ProviderSettings, str], EmbeddingService]
VectorStoreFactory = Callable[[VectorStoreSettings], VectorStore]


@dataclass
class VectorStoreConnection:
    """A vector store client together with the registry of its collections"""
    settings: VectorStoreSettings
    store: VectorStore
    registry: CollectionRegistry


class VectorSearchUseCase:
    """
    Use case for resolving a text query against one or more vector collections.

    Responsibilities:
    - Check that provider and vector store configuration is present
    - Validate requested collections against the registry
    - Embed the query once and fan out one search per confirmed collection
    - Concatenate and label the per-collection hits

    Does NOT:
    - Retry failed calls
    - Re-rank hits across collections
    """

    def __init__(
            self,
            embedding_service_factory: EmbeddingServiceFactory,
            vector_store_factory: VectorStoreFactory,
            config: SearchConfig,
            result_publisher: Optional[ResultPublisher] = None,
    ):
        self.config = config
        self.result_publisher = result_publisher
        self._vector_store_factory = vector_store_factory
        self._embedding_services: ConnectionCache[ProviderSettings, EmbeddingService] = ConnectionCache(
            factory=lambda provider: embedding_service_factory(provider, config.embedding_model),
            closer=lambda service: service.aclose(),
            name="embedding service",
        )
        self._vector_stores: ConnectionCache[VectorStoreSettings, VectorStoreConnection] = ConnectionCache(
            factory=self._build_vector_store_connection,
            closer=lambda connection: connection.store.aclose(),
            name="vector store",
        )

    def _build_vector_store_connection(self, settings: VectorStoreSettings) -> VectorStoreConnection:
        store = self._vector_store_factory(settings)
        return VectorStoreConnection(settings=settings, store=store, registry=CollectionRegistry(store))

    async def initialize(self) -> None:
        """Warm the registry of the environment-configured vector store, if any"""
        if self.config.vector_store is None or self.config.require_user_vector_store:
            logger.info("No environment vector store configured; registry will populate on first search")
            return
        async with self._vector_stores.lease(self.config.vector_store) as connection:
            await connection.registry.initialize()

    async def close(self) -> None:
        await self._embedding_services.close()
        await self._vector_stores.close()

    def known_collections(self) -> List[str]:
        """Cached collection names across every vector store connection"""
        names = set()
        for connection in self._vector_stores.handles():
            names.update(connection.registry.known_collections)
        return sorted(names)

    def _resolve_embedding_provider(self, settings: SettingsBundle) -> ProviderSettings:
        provider = settings.embedding_provider or self.config.embedding_provider
        if provider is None or not provider.is_complete:
            raise ConfigurationError(
                "Embedding provider settings not configured. "
                "Please configure the provider endpoint and API key."
            )
        return provider

    def _resolve_vector_store(self, settings: SettingsBundle) -> VectorStoreSettings:
        if settings.vector_store is not None:
            return settings.vector_store
        if self.config.require_user_vector_store:
            raise ConfigurationError(
                "Vector store settings not configured. Please configure the vector store URL and API key."
            )
        if self.config.vector_store is None:
            raise ConfigurationError("No vector store configured for this deployment.")
        return self.config.vector_store

    async def search(self, request: SearchRequest) -> List[SearchResult]:
        """
        Execute one search request to completion.

        Args:
            request: Query text, target collections and search parameters

        Returns:
            Hits grouped by collection in confirmed-collection order. Within a
            collection the vector store's ordering is kept; no global re-sort.

        Raises:
            ConfigurationError: provider or vector store settings are missing
            NoValidCollectionsError: none of the requested collections exist
            EmbeddingDimensionError: the embedding has the wrong length
            UpstreamCallError: the embedding provider or a collection search failed
        """
        stage = SearchStage.VALIDATING
        try:
            provider = self._resolve_embedding_provider(request.settings)
            store_settings = self._resolve_vector_store(request.settings)

            # Held until the fan-out completes; eviction never closes a leased client
            async with self._vector_stores.lease(store_settings) as connection:
                confirmed = await connection.registry.validate(request.collection_names)
                if not confirmed:
                    raise NoValidCollectionsError(
                        f"None of the requested collections exist: {', '.join(request.collection_names)}",
                        requested=list(request.collection_names),
                    )

                stage = SearchStage.EMBEDDING
                embedding = await self._embed(provider, request.query)

                stage = SearchStage.SEARCHING
                results = await self._search_collections(connection.store, confirmed, embedding, request)
                stage = SearchStage.AGGREGATED
        except DomainException as e:
            self._log_failure(request, stage, e)
            raise
        except Exception as e:
            self._log_failure(request, stage, e)
            if stage in (SearchStage.EMBEDDING, SearchStage.SEARCHING):
                raise UpstreamCallError(f"Vector search failed while {stage.value}: {e}") from e
            raise

        logger.info(
            f"Search for '{request.query[:50]}' returned {len(results)} results "
            f"from {len(confirmed)} collections"
        )
        await self._publish(results)
        return results

    async def _embed(self, provider: ProviderSettings, query: str) -> EmbeddingVector:
        async with self._embedding_services.lease(provider) as embedding_service:
            embedding = await embedding_service.generate_embedding(query)
        if len(embedding.values) != self.config.embedding_dimensions:
            raise EmbeddingDimensionError(
                expected=self.config.embedding_dimensions,
                actual=len(embedding.values),
            )
        return embedding

    async def _search_collections(
            self,
            store: VectorStore,
            collections: Sequence[str],
            embedding: EmbeddingVector,
            request: SearchRequest,
    ) -> List[SearchResult]:
        # Joint await: the first failing collection fails the whole request
        per_collection = await asyncio.gather(*[
            store.search(
                collection_name=collection,
                query_embedding=embedding,
                limit=request.limit,
                score_threshold=request.score_threshold,
                with_payload=request.with_payload,
            )
            for collection in collections
        ])

        results: List[SearchResult] = []
        for collection, hits in zip(collections, per_collection):
            if request.targets_multiple_collections:
                results.extend(hit.with_collection(collection) for hit in hits)
            else:
                results.extend(hits)
        return results

    async def _publish(self, results: List[SearchResult]) -> None:
        if not self.config.publish_results or self.result_publisher is None:
            return
        try:
            await self.result_publisher.publish(SEARCH_RESULT_EVENT, results)
        except Exception as e:
            logger.warning(f"Failed to publish search results: {e}")

    def _log_failure(self, request: SearchRequest, stage: SearchStage, error: Exception) -> None:
        logger.error(
            f"Vector search failed (stage={stage.value} -> {SearchStage.FAILED.value}) "
            f"for query '{request.query[:50]}' on collections {list(request.collection_names)}: "
            f"{type(error).__name__}: {error}"
        )

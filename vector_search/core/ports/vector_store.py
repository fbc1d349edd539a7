from abc import ABC, abstractmethod
from typing import List
from ..domain.entities.search import SearchResult
from ..domain.value_objects.embedding import EmbeddingVector


class VectorStore(ABC):
    """Port for the external vector database"""

    @abstractmethod
    async def list_collections(self) -> List[str]:
        """
        List the names of all collections in the vector database.

        Raises:
            VectorStoreError: if the listing call fails
        """
        pass

    @abstractmethod
    async def search(
            self,
            collection_name: str,
            query_embedding: EmbeddingVector,
            limit: int,
            score_threshold: float,
            with_payload: bool = True,
    ) -> List[SearchResult]:
        """
        Search one collection for the nearest neighbors of a vector.

        Args:
            collection_name: Collection to search
            query_embedding: Query embedding vector
            limit: Maximum number of hits
            score_threshold: Minimum similarity score of a hit
            with_payload: Whether to return point payloads

        Returns:
            Hits ordered as returned by the vector database, without collection labels
        """
        pass

    async def aclose(self) -> None:
        """Release network resources held by the store"""
        pass

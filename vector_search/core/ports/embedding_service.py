from abc import ABC, abstractmethod
from ..domain.value_objects.embedding import EmbeddingVector


class EmbeddingService(ABC):
    """Port for embedding generation services"""

    @abstractmethod
    async def generate_embedding(self, text: str) -> EmbeddingVector:
        """
        Generate embedding for a single text.

        Args:
            text: Text to embed

        Returns:
            EmbeddingVector containing the embedding and metadata

        Raises:
            EmbeddingGenerationError: if the provider call fails
        """
        pass

    async def aclose(self) -> None:
        """Release network resources held by the service"""
        pass

from abc import ABC
from typing import List
from ...core.ports.embedding_service import EmbeddingService
from ...core.domain.value_objects.embedding import EmbeddingVector
from ...core.domain.exceptions import EmbeddingGenerationError


class BaseEmbeddingService(EmbeddingService, ABC):
    """Base class for embedding services with common functionality"""

    def __init__(self, model_name: str):
        self.model_name = model_name

    def _validate_text(self, text: str) -> str:
        """Reject empty input; the text itself is sent unchanged"""
        if not text or not text.strip():
            raise ValueError("Text cannot be empty")
        return text

    def _to_embedding_vector(self, values: List[float]) -> EmbeddingVector:
        if not values:
            raise EmbeddingGenerationError("No embedding in response")
        try:
            floats = [float(v) for v in values]
        except (TypeError, ValueError) as e:
            raise EmbeddingGenerationError(f"Malformed embedding in response: {e}")
        return EmbeddingVector(
            values=floats,
            model_name=self.model_name,
            dimensions=len(floats)
        )

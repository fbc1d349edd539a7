import httpx
import logging
from typing import Dict, Any, List, Optional
from .base_embedding import BaseEmbeddingService
from ...core.domain.value_objects.embedding import EmbeddingVector
from ...core.domain.exceptions import EmbeddingGenerationError

logger = logging.getLogger(__name__)


class OpenAIEmbeddingService(BaseEmbeddingService):
    """OpenAI-compatible embeddings API client. Failed requests are not retried."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model_name: str = "text-embedding-3-small",
        timeout: int = 60,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(model_name)
        if not api_key:
            raise ValueError("api_key is required")
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

        limits = httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0
        )
        self.client = httpx.AsyncClient(
            timeout=timeout,
            limits=limits,
            headers={"Authorization": f"Bearer {api_key}"},
            follow_redirects=True,
            transport=transport,
        )

    def _build_api_url(self) -> str:
        return f"{self.base_url}/embeddings"

    def _extract_embedding(self, response_json: Dict[str, Any]) -> List[float]:
        data = response_json.get("data")
        if not data:
            raise EmbeddingGenerationError("No embeddings in response")
        return data[0].get("embedding")

    async def generate_embedding(self, text: str) -> EmbeddingVector:
        """Generate embedding for a single text"""
        text = self._validate_text(text)
        payload = {"model": self.model_name, "input": text}

        try:
            response = await self.client.post(self._build_api_url(), json=payload)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Embedding request failed: {e.response.status_code} - {e.response.text}")
            raise EmbeddingGenerationError(
                f"HTTP {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.TimeoutException as e:
            logger.error(f"Embedding request timed out after {self.timeout}s")
            raise EmbeddingGenerationError(f"Embedding request timed out: {e}") from e
        except httpx.RequestError as e:
            logger.error(f"Embedding request error: {str(e)}")
            raise EmbeddingGenerationError(f"Embedding request error: {str(e)}") from e
        except ValueError as e:
            raise EmbeddingGenerationError(f"Invalid JSON in embedding response: {e}") from e

        embedding = self._to_embedding_vector(self._extract_embedding(result))
        logger.debug(f"Generated {embedding.dimensions}-dimensional embedding with {self.model_name}")
        return embedding

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

import httpx
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from ...core.ports.vector_store import VectorStore
from ...core.domain.entities.search import SearchResult
from ...core.domain.value_objects.embedding import EmbeddingVector
from ...core.domain.exceptions import VectorStoreError

logger = logging.getLogger(__name__)


class QdrantVectorStoreAdapter(VectorStore):
    """
    Qdrant implementation of the VectorStore port using the REST API.
    """

    def __init__(
            self,
            url: str = "http://localhost:6333",
            api_key: Optional[str] = None,
            timeout: int = 30,
            transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            url: Base URL of the Qdrant server.
            api_key: API key; omit for unauthenticated local instances.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport, used by tests.
        """
        self.url = url.rstrip('/')
        headers = {"Content-Type": "application/json"}
        if api_key:
            headers["api-key"] = api_key
        self.client = httpx.AsyncClient(
            base_url=self.url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        try:
            response = await self.client.request(method, path, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise VectorStoreError(
                f"Qdrant HTTP {e.response.status_code} on {method} {path}: {e.response.text}"
            ) from e
        except httpx.RequestError as e:
            raise VectorStoreError(f"Qdrant request error on {method} {path}: {e}") from e
        except ValueError as e:
            raise VectorStoreError(f"Invalid JSON from Qdrant on {method} {path}: {e}") from e
        if not isinstance(body, dict) or "result" not in body:
            raise VectorStoreError(f"Unexpected Qdrant response on {method} {path}: {body!r}")
        return body["result"]

    def _to_search_result(self, point: Dict[str, Any]) -> SearchResult:
        return SearchResult(
            id=str(point.get("id")),
            score=float(point.get("score", 0.0)),
            payload=point.get("payload"),
        )

    async def list_collections(self) -> List[str]:
        result = await self._request("GET", "/collections")
        collections = result.get("collections", []) if isinstance(result, dict) else []
        names = [c["name"] for c in collections if c.get("name")]
        logger.debug(f"Qdrant at {self.url} reports {len(names)} collections")
        return names

    async def search(
            self,
            collection_name: str,
            query_embedding: EmbeddingVector,
            limit: int,
            score_threshold: float,
            with_payload: bool = True,
    ) -> List[SearchResult]:
        payload = {
            "vector": list(query_embedding.values),
            "limit": limit,
            "score_threshold": score_threshold,
            "with_payload": with_payload,
        }
        path = f"/collections/{quote(collection_name, safe='')}/points/search"
        points = await self._request("POST", path, payload)
        if not isinstance(points, list):
            raise VectorStoreError(f"Unexpected search result from collection {collection_name}")
        return [self._to_search_result(point) for point in points]

    async def aclose(self) -> None:
        await self.client.aclose()

import httpx
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..api.channel import VectorSearchChannel
from ..core.domain.exceptions import (
    ConfigurationError, DomainException, EmbeddingDimensionError, EmbeddingGenerationError,
    InvalidRequestError, NoValidCollectionsError, UnknownOperationError, UpstreamCallError,
    VectorStoreError
)

logger = logging.getLogger(__name__)

REMOTE_ERRORS = {
    exc_type.__name__: exc_type
    for exc_type in (
        ConfigurationError,
        InvalidRequestError,
        NoValidCollectionsError,
        EmbeddingDimensionError,
        UpstreamCallError,
        EmbeddingGenerationError,
        VectorStoreError,
        UnknownOperationError,
    )
}


class ChannelTransport(ABC):
    """Carries a channel command from the caller to the search service"""

    @abstractmethod
    async def call(self, command: str, args: Dict[str, Any]) -> Any:
        pass

    async def aclose(self) -> None:
        pass


class InProcessTransport(ChannelTransport):
    """Calls a channel living in the same process"""

    def __init__(self, channel: VectorSearchChannel):
        self.channel = channel

    async def call(self, command: str, args: Dict[str, Any]) -> Any:
        return await self.channel.call(command, args)


class HttpTransport(ChannelTransport):
    """
    Calls the channel over HTTP. Error responses are raised as the domain
    exception named in the body, carrying the server's message verbatim.
    """

    def __init__(
            self,
            base_url: str,
            timeout: Optional[float] = 60.0,
            transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def call(self, command: str, args: Dict[str, Any]) -> Any:
        try:
            response = await self.client.post(f"/channel/{command}", json=args)
        except httpx.RequestError as e:
            raise UpstreamCallError(f"Vector search service unreachable: {e}") from e

        if response.is_success:
            return response.json()
        raise self._to_exception(response)

    def _to_exception(self, response: httpx.Response) -> DomainException:
        try:
            body = response.json()
            name, detail = body["error"], body["detail"]
            context = body.get("context") or {}
        except (ValueError, KeyError, TypeError):
            return UpstreamCallError(f"HTTP {response.status_code}: {response.text}")

        exc_type = REMOTE_ERRORS.get(name, UpstreamCallError)
        if exc_type is EmbeddingDimensionError and {"expected", "actual"} <= context.keys():
            return EmbeddingDimensionError(expected=context["expected"], actual=context["actual"])
        if exc_type is EmbeddingDimensionError:
            return UpstreamCallError(detail)
        if exc_type is NoValidCollectionsError:
            return NoValidCollectionsError(detail, requested=context.get("requested"))
        return exc_type(detail)

    async def aclose(self) -> None:
        await self.client.aclose()

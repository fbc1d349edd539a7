import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from ..core.domain.entities.search import DEFAULT_SCORE_THRESHOLD, DEFAULT_SEARCH_LIMIT
from ..api.channel import SEARCH_COMMAND
from .transport import ChannelTransport

logger = logging.getLogger(__name__)

SettingsProvider = Callable[[], Mapping[str, Any]]

MIN_DEPLOYMENT_THRESHOLD = 0.4
MAX_DEPLOYMENT_THRESHOLD = 0.5


class VectorSearchClient:
    """
    Caller-side handle on the search channel.

    Applies default limit and score threshold, and reads the caller's settings
    through `settings_provider` on every call, so credential or endpoint
    changes apply to the next search without rebuilding the client.
    """

    def __init__(
            self,
            transport: ChannelTransport,
            settings_provider: SettingsProvider,
            default_limit: int = DEFAULT_SEARCH_LIMIT,
            score_threshold: float = DEFAULT_SCORE_THRESHOLD,
            with_payload: bool = True,
    ):
        if default_limit <= 0:
            raise ValueError("default_limit must be positive")
        if not MIN_DEPLOYMENT_THRESHOLD <= score_threshold <= MAX_DEPLOYMENT_THRESHOLD:
            raise ValueError(
                f"score_threshold must be between {MIN_DEPLOYMENT_THRESHOLD} and {MAX_DEPLOYMENT_THRESHOLD}"
            )
        self.transport = transport
        self.settings_provider = settings_provider
        self.default_limit = default_limit
        self.score_threshold = score_threshold
        self.with_payload = with_payload

    async def search(
            self,
            query: str,
            collection_names: Union[str, Sequence[str]],
            limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Search one or more collections.

        Returns:
            Result dicts with `id`, `score`, `payload`, and `collection` when
            more than one collection was requested
        """
        names = [collection_names] if isinstance(collection_names, str) else list(collection_names)
        args = {
            "query": query,
            "collectionNames": names,
            "limit": self.default_limit if limit is None else limit,
            "score_threshold": self.score_threshold,
            "with_payload": self.with_payload,
            "settings": dict(self.settings_provider()),
        }
        try:
            return await self.transport.call(SEARCH_COMMAND, args)
        except Exception as e:
            logger.error(f"Vector search error: {e}")
            raise

    async def aclose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

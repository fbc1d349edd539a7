import logging
from typing import Iterable, List, Set

from ..ports.vector_store import VectorStore

logger = logging.getLogger(__name__)


class CollectionRegistry:
    """
    Locally cached set of collection names known to exist in the vector store.

    The cache is an optimization only; the vector store listing is authoritative.
    Names are added when a listing confirms them and are never removed by
    validation, so a collection dropped upstream still surfaces as a search error.
    """

    def __init__(self, vector_store: VectorStore):
        self.vector_store = vector_store
        self._known: Set[str] = set()

    @property
    def known_collections(self) -> List[str]:
        """Sorted snapshot of the cached collection names"""
        return sorted(self._known)

    async def initialize(self) -> None:
        """Best-effort population of the cache; failures leave it empty"""
        try:
            names = await self.vector_store.list_collections()
        except Exception as e:
            logger.warning(f"Failed to initialize collections: {e}")
            return
        self._known.update(names)
        logger.info(f"Collection registry initialized with {len(names)} collections")

    async def validate(self, names: Iterable[str]) -> List[str]:
        """
        Return the requested names confirmed to exist, preserving input order.

        Cached names are accepted without a network call. If any name is
        missing from the cache, a single listing call is made for the whole
        batch. Names absent from the listing are dropped silently. If the
        listing call fails the result is empty; this method never raises.
        """
        requested = list(names)
        missing = [name for name in requested if name not in self._known]
        if not missing:
            return requested

        try:
            available = set(await self.vector_store.list_collections())
        except Exception as e:
            logger.error(f"Failed to check collections {missing}: {e}")
            return []

        newly_confirmed = {name for name in missing if name in available}
        if newly_confirmed:
            self._known.update(newly_confirmed)
            logger.debug(f"Cached newly confirmed collections: {sorted(newly_confirmed)}")

        dropped = [name for name in missing if name not in available]
        if dropped:
            logger.info(f"Collections not found in vector store: {dropped}")

        return [name for name in requested if name in self._known]

import logging
from collections import OrderedDict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Dict, Generic, Hashable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ConnectionCache(Generic[K, V]):
    """
    Keyed cache of client handles built from configuration.

    Handles are borrowed with `lease(key)`. A handle is built only once its
    configuration key is known, and the same handle is returned for as long
    as the key is unchanged. A new key builds a new handle; the least recently
    used handles beyond `max_size` leave the cache, but a handle is closed
    only once its last lease has been released. The factory runs to
    completion before a handle is stored, so a failed build never leaves a
    half-initialized entry behind.
    """

    def __init__(
            self,
            factory: Callable[[K], V],
            closer: Optional[Callable[[V], Awaitable[None]]] = None,
            max_size: int = 4,
            name: str = "connection",
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._factory = factory
        self._closer = closer
        self._max_size = max_size
        self._name = name
        self._handles: "OrderedDict[K, V]" = OrderedDict()
        # Keyed by id(handle)
        self._leases: Dict[int, int] = {}
        self._retired: Dict[int, V] = {}

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, key: K) -> bool:
        return key in self._handles

    def handles(self) -> List[V]:
        return list(self._handles.values())

    def active_leases(self, handle: V) -> int:
        return self._leases.get(id(handle), 0)

    @asynccontextmanager
    async def lease(self, key: K) -> AsyncIterator[V]:
        """Borrow the handle for `key`, building it on first use"""
        handle = self._acquire(key)
        try:
            await self._evict()
            yield handle
        finally:
            await self._release(handle)

    def _acquire(self, key: K) -> V:
        if key in self._handles:
            self._handles.move_to_end(key)
            handle = self._handles[key]
        else:
            handle = self._factory(key)
            self._handles[key] = handle
            logger.info(f"Built new {self._name} handle ({len(self._handles)} cached)")
        self._leases[id(handle)] = self._leases.get(id(handle), 0) + 1
        return handle

    async def _evict(self) -> None:
        while len(self._handles) > self._max_size:
            _, evicted = self._handles.popitem(last=False)
            if self.active_leases(evicted):
                logger.debug(f"Deferring close of evicted {self._name} handle until its leases end")
                self._retired[id(evicted)] = evicted
            else:
                await self._close(evicted)

    async def _release(self, handle: V) -> None:
        remaining = self._leases.get(id(handle), 0) - 1
        if remaining > 0:
            self._leases[id(handle)] = remaining
            return
        self._leases.pop(id(handle), None)
        retired = self._retired.pop(id(handle), None)
        if retired is not None:
            await self._close(retired)

    async def close(self) -> None:
        """Close and forget every handle, leased or not"""
        handles = list(self._handles.values()) + list(self._retired.values())
        self._handles.clear()
        self._retired.clear()
        self._leases.clear()
        for handle in handles:
            await self._close(handle)

    async def _close(self, handle: V) -> None:
        if self._closer is None:
            return
        try:
            await self._closer(handle)
        except Exception as e:
            logger.warning(f"Error closing {self._name} handle: {e}")

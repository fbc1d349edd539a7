import asyncio
import logging
from collections import defaultdict
from typing import Any, AsyncIterator, DefaultDict, Set

from ...core.ports.result_publisher import ResultPublisher

logger = logging.getLogger(__name__)


class InMemoryResultPublisher(ResultPublisher):
    """
    Process-local publish/subscribe over asyncio queues.

    Each subscriber gets its own bounded queue. A subscriber that falls behind
    loses its oldest undelivered message rather than blocking publishers.
    """

    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: DefaultDict[str, Set[asyncio.Queue]] = defaultdict(set)

    def subscriber_count(self, event: str) -> int:
        return len(self._subscribers.get(event, ()))

    async def publish(self, event: str, data: Any) -> None:
        for queue in list(self._subscribers.get(event, ())):
            if queue.full():
                queue.get_nowait()
                logger.warning(f"Dropped oldest '{event}' message for a slow subscriber")
            queue.put_nowait(data)

    async def subscribe(self, event: str) -> AsyncIterator[Any]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers[event].add(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._subscribers[event].discard(queue)
            if not self._subscribers[event]:
                del self._subscribers[event]

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from ..adapters.events.in_memory_publisher import InMemoryResultPublisher
from ..core.domain.exceptions import InvalidRequestError, UnknownOperationError
from ..core.ports.result_publisher import ResultPublisher
from ..core.use_cases.vector_search import SEARCH_RESULT_EVENT, VectorSearchUseCase
from .schemas import SearchCallParams

logger = logging.getLogger(__name__)

CHANNEL_NAME = "vector-search"
SEARCH_COMMAND = "search"


class VectorSearchChannel:
    """
    Transport facade over the search use case.

    Exposes one command (`search`) and one event stream (`onSearchResult`).
    Anything else is rejected with UnknownOperationError.
    """

    def __init__(
            self,
            use_case: VectorSearchUseCase,
            result_publisher: Optional[ResultPublisher] = None,
    ):
        self.use_case = use_case
        self.result_publisher = (
            result_publisher or use_case.result_publisher or InMemoryResultPublisher()
        )

    async def call(self, command: str, args: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        if command != SEARCH_COMMAND:
            raise UnknownOperationError(f"Command not found: {command}")

        try:
            request = SearchCallParams.model_validate(args or {}).to_domain()
        except ValueError as e:
            logger.warning(f"Rejected malformed search payload: {e}")
            raise InvalidRequestError(f"Invalid search parameters: {e}") from e

        try:
            results = await self.use_case.search(request)
        except Exception as e:
            logger.error(f"VectorSearchChannel error: {e}")
            raise
        return [result.to_dict() for result in results]

    def listen(self, event: str) -> AsyncIterator[List[Dict[str, Any]]]:
        if event != SEARCH_RESULT_EVENT:
            raise UnknownOperationError(f"Event not found: {event}")
        return self._stream(event)

    async def _stream(self, event: str) -> AsyncIterator[List[Dict[str, Any]]]:
        async for results in self.result_publisher.subscribe(event):
            yield [result.to_dict() for result in results]

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator


class ResultPublisher(ABC):
    """Port for the asynchronous result event stream"""

    @abstractmethod
    async def publish(self, event: str, data: Any) -> None:
        """Deliver `data` to every current subscriber of `event`"""
        pass

    @abstractmethod
    def subscribe(self, event: str) -> AsyncIterator[Any]:
        """Return an async iterator over future messages published on `event`"""
        pass

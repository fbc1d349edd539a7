from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .settings_bundle import SettingsBundle


DEFAULT_SEARCH_LIMIT = 5
DEFAULT_SCORE_THRESHOLD = 0.4


class SearchStage(str, Enum):
    """Lifecycle of a single search request"""
    VALIDATING = "validating"
    EMBEDDING = "embedding"
    SEARCHING = "searching"
    AGGREGATED = "aggregated"
    FAILED = "failed"


@dataclass(frozen=True)
class SearchRequest:
    """A query against one or more named collections"""
    query: str
    collection_names: Tuple[str, ...]
    limit: int = DEFAULT_SEARCH_LIMIT
    score_threshold: float = DEFAULT_SCORE_THRESHOLD
    with_payload: bool = True
    settings: SettingsBundle = field(default_factory=SettingsBundle.empty)

    def __post_init__(self):
        if not self.query or not self.query.strip():
            raise ValueError("query cannot be empty")
        if isinstance(self.collection_names, str):
            object.__setattr__(self, "collection_names", (self.collection_names,))
        else:
            object.__setattr__(self, "collection_names", tuple(self.collection_names))
        if not self.collection_names:
            raise ValueError("at least one collection name is required")
        if any(not name for name in self.collection_names):
            raise ValueError("collection names cannot be empty")
        if self.limit <= 0:
            raise ValueError("limit must be positive")
        if not 0 <= self.score_threshold <= 1:
            raise ValueError("score_threshold must be between 0 and 1")

    @property
    def targets_multiple_collections(self) -> bool:
        return len(self.collection_names) > 1


@dataclass(frozen=True)
class SearchResult:
    """A single nearest-neighbor hit"""
    id: str
    score: float
    payload: Optional[Dict[str, Any]] = None
    collection: Optional[str] = None

    def with_collection(self, collection: str) -> "SearchResult":
        return SearchResult(id=self.id, score=self.score, payload=self.payload, collection=collection)

    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id, "score": self.score, "payload": self.payload}
        if self.collection is not None:
            data["collection"] = self.collection
        return data

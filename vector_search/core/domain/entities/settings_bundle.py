from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ProviderSettings:
    """Embedding provider credentials as supplied by the host"""
    endpoint: Optional[str] = None
    api_key: Optional[str] = None
    is_configured: bool = False

    @property
    def is_complete(self) -> bool:
        """True when the host marked the provider configured and both endpoint and key are set"""
        return bool(self.is_configured and self.endpoint and self.api_key)


@dataclass(frozen=True)
class VectorStoreSettings:
    """Vector store endpoint; api_key is optional for unauthenticated local stores"""
    url: str
    api_key: Optional[str] = None

    def __post_init__(self):
        if not self.url or not self.url.strip():
            raise ValueError("Vector store url cannot be empty")


@dataclass(frozen=True)
class SettingsBundle:
    """Per-call settings snapshot forwarded by the client proxy"""
    embedding_provider: Optional[ProviderSettings] = None
    vector_store: Optional[VectorStoreSettings] = None

    @classmethod
    def empty(cls) -> "SettingsBundle":
        return cls()


@dataclass(frozen=True)
class SearchConfig:
    """
    Construction-time configuration of the search orchestrator.

    `vector_store` is the environment-fixed store. When `require_user_vector_store`
    is set, every request must carry its own store settings instead.
    `embedding_provider` is a server-side fallback used when a request carries none.
    """
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536
    vector_store: Optional[VectorStoreSettings] = None
    require_user_vector_store: bool = False
    embedding_provider: Optional[ProviderSettings] = None
    publish_results: bool = False

    def __post_init__(self):
        if self.embedding_dimensions <= 0:
            raise ValueError("embedding_dimensions must be positive")
        if not self.embedding_model:
            raise ValueError("embedding_model cannot be empty")

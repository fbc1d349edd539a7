from pydantic_settings import BaseSettings
from pydantic import Field, HttpUrl, SecretStr, ValidationError
from typing import Optional, Literal
import logging

from .core.domain.entities.settings_bundle import (
    ProviderSettings, SearchConfig, VectorStoreSettings
)

logger = logging.getLogger(__name__)


class CriticalConfigError(Exception):
    """Custom exception for critical configuration failures."""
    pass


class AppSettings(BaseSettings):
    # Pydantic model configuration
    model_config = {
        'extra': 'ignore',
        'env_file': '.env',
        'env_file_encoding': 'utf-8',
        'validate_default': True,
    }

    # -- Vector store (Qdrant) --
    VECTOR_STORE_SOURCE: Literal['environment', 'user'] = Field(
        default='environment',
        description="Where the vector store URL comes from: this environment, or each caller's settings."
    )
    QDRANT_URL: HttpUrl = Field(
        default='http://localhost:6333',
        description="Qdrant base URL used when VECTOR_STORE_SOURCE=environment."
    )
    QDRANT_API_KEY: Optional[SecretStr] = Field(
        default=None,
        description="Qdrant API key. Leave unset for an unauthenticated local instance."
    )
    VECTOR_STORE_TIMEOUT: int = Field(
        default=30,
        gt=0,
        description="Timeout per vector store request (seconds)."
    )

    # -- Embedding provider (OpenAI-compatible) --
    OPENAI_BASE_URL: HttpUrl = Field(
        default='https://api.openai.com/v1',
        description="Fallback embeddings endpoint when a caller supplies none."
    )
    OPENAI_API_KEY: Optional[SecretStr] = Field(
        default=None,
        description="Server-side fallback API key. Unset means callers must supply their own."
    )
    EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small",
        min_length=1,
        description="The embedding model to be used."
    )
    EMBEDDING_DIMENSIONS: int = Field(
        default=1536,
        gt=0,
        description="Dimensionality the embedding model must return."
    )
    EMBEDDING_TIMEOUT: int = Field(
        default=60,
        gt=0,
        description="Timeout per embedding request (seconds)."
    )

    # -- Search defaults --
    DEFAULT_SEARCH_LIMIT: int = Field(default=5, gt=0, description="Default number of hits per collection.")
    DEFAULT_SCORE_THRESHOLD: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Default minimum similarity score."
    )
    PUBLISH_SEARCH_RESULTS: bool = Field(
        default=False,
        description="Push every completed search to the onSearchResult event stream."
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Root log level.")

    # FastAPI settings
    API_HOST: str = Field("0.0.0.0")
    API_PORT: int = Field(8000)
    DEBUG: bool = Field(False)

    def to_search_config(self) -> SearchConfig:
        """Build the orchestrator configuration from environment settings."""
        vector_store = VectorStoreSettings(
            url=str(self.QDRANT_URL),
            api_key=self.QDRANT_API_KEY.get_secret_value() if self.QDRANT_API_KEY else None,
        )
        embedding_provider = None
        if self.OPENAI_API_KEY:
            embedding_provider = ProviderSettings(
                endpoint=str(self.OPENAI_BASE_URL),
                api_key=self.OPENAI_API_KEY.get_secret_value(),
                is_configured=True,
            )
        return SearchConfig(
            embedding_model=self.EMBEDDING_MODEL,
            embedding_dimensions=self.EMBEDDING_DIMENSIONS,
            vector_store=vector_store if self.VECTOR_STORE_SOURCE == 'environment' else None,
            require_user_vector_store=self.VECTOR_STORE_SOURCE == 'user',
            embedding_provider=embedding_provider,
            publish_results=self.PUBLISH_SEARCH_RESULTS,
        )


# Instantiate settings. This will load, validate, and expose the settings.
# Pydantic will raise a ValidationError if required fields are missing or types are wrong.
try:
    settings = AppSettings()
except ValidationError as e:
    error_messages = []
    for error in e.errors():
        field = ".".join(str(loc) for loc in error['loc'])
        message = error['msg']
        error_messages.append(f"  - Field '{field}': {message}")

    full_error_message = "Environment variable validation failed!\n" + "\n".join(error_messages) + \
                         "\nPlease check the logs and your .env file or environment settings."
    logger.error(full_error_message)

    raise CriticalConfigError(full_error_message) from e

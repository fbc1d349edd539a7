import logging
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .infrastructure.logging import setup_logging, RequestLoggingMiddleware

from .config import settings

# Import adapter classes
from .adapters.embedding.openai_embedding import OpenAIEmbeddingService
from .adapters.vector_store.qdrant_store import QdrantVectorStoreAdapter
from .adapters.events.in_memory_publisher import InMemoryResultPublisher

from .core.domain.entities.settings_bundle import ProviderSettings, VectorStoreSettings
from .core.use_cases.vector_search import VectorSearchUseCase

# Imports for routers
from .api.routes.channel import router as channel_router
from .api.routes.health import router as health_router


app = FastAPI(
    title="Vector Search",
    debug=settings.DEBUG
)

# Setup logging early
setup_logging()
logger = logging.getLogger(__name__)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Adjust in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def build_embedding_service(provider: ProviderSettings, model_name: str) -> OpenAIEmbeddingService:
    return OpenAIEmbeddingService(
        base_url=provider.endpoint,
        api_key=provider.api_key,
        model_name=model_name,
        timeout=settings.EMBEDDING_TIMEOUT,
    )


def build_vector_store(store: VectorStoreSettings) -> QdrantVectorStoreAdapter:
    return QdrantVectorStoreAdapter(
        url=store.url,
        api_key=store.api_key,
        timeout=settings.VECTOR_STORE_TIMEOUT,
    )


# On startup, instantiate and store singleton instances in app.state
@app.on_event("startup")
async def on_startup():
    logger.info("Application startup: instantiating adapters...")

    app.state.result_publisher = InMemoryResultPublisher()

    search_config = settings.to_search_config()
    app.state.vector_search_use_case = VectorSearchUseCase(
        embedding_service_factory=build_embedding_service,
        vector_store_factory=build_vector_store,
        config=search_config,
        result_publisher=app.state.result_publisher,
    )
    logger.info(
        f"Vector store source: {settings.VECTOR_STORE_SOURCE}; "
        f"embedding model: {search_config.embedding_model} ({search_config.embedding_dimensions} dims)"
    )

    # Best effort; an unreachable vector store only leaves the registry empty
    await app.state.vector_search_use_case.initialize()

    logger.info("Startup complete: adapters instantiated")


@app.on_event("shutdown")
async def on_shutdown():
    logger.info("Application shutdown: closing resources...")
    use_case = getattr(app.state, "vector_search_use_case", None)
    if use_case:
        try:
            await use_case.close()
            logger.info("Closed embedding and vector store HTTP clients")
        except Exception as e:
            logger.warning(f"Error closing HTTP clients: {e}")
    logger.info("Shutdown complete.")


app.include_router(
    channel_router,
    prefix="/channel",
    tags=["channel"]
)

app.include_router(
    health_router,
    prefix="/health",
    tags=["health"]
)


if __name__ == "__main__":
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)

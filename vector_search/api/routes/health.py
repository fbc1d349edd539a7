from typing import List
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from ...api.deps import get_vector_search_use_case
from ...core.use_cases.vector_search import VectorSearchUseCase

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    embedding_model: str
    embedding_dimensions: int
    known_collections: List[str]


@router.get("/", response_model=HealthResponse)
async def health(
    use_case: VectorSearchUseCase = Depends(get_vector_search_use_case),
):
    """
    Liveness check. Reports the cached collection names without calling the vector store.
    """
    return HealthResponse(
        status="ok",
        embedding_model=use_case.config.embedding_model,
        embedding_dimensions=use_case.config.embedding_dimensions,
        known_collections=use_case.known_collections(),
    )

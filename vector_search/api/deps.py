from fastapi import Request, HTTPException, Depends

from .channel import VectorSearchChannel
from ..core.ports.result_publisher import ResultPublisher
from ..core.use_cases.vector_search import VectorSearchUseCase


# Dependency provider functions
def get_vector_search_use_case(request: Request) -> VectorSearchUseCase:
    use_case = getattr(request.app.state, "vector_search_use_case", None)
    if use_case is None:
        raise HTTPException(status_code=500, detail="VectorSearchUseCase not initialized")
    return use_case


def get_result_publisher(request: Request) -> ResultPublisher:
    publisher = getattr(request.app.state, "result_publisher", None)
    if publisher is None:
        raise HTTPException(status_code=500, detail="ResultPublisher not initialized")
    return publisher


def get_vector_search_channel(
        use_case: VectorSearchUseCase = Depends(get_vector_search_use_case),
        result_publisher: ResultPublisher = Depends(get_result_publisher),
) -> VectorSearchChannel:
    return VectorSearchChannel(use_case=use_case, result_publisher=result_publisher)

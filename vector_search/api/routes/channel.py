import json
import logging
from typing import Any, Dict, Optional
from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse, StreamingResponse

from ...api.deps import get_vector_search_channel
from ...api.channel import VectorSearchChannel
from ...api.schemas import ErrorResponse
from ...core.domain.exceptions import (
    ConfigurationError, DomainException, EmbeddingDimensionError, InvalidRequestError,
    NoValidCollectionsError, UnknownOperationError, UpstreamCallError
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Most specific first; UpstreamCallError also covers its subclasses
ERROR_STATUS = [
    (ConfigurationError, status.HTTP_400_BAD_REQUEST),
    (InvalidRequestError, 422),
    (NoValidCollectionsError, status.HTTP_404_NOT_FOUND),
    (UnknownOperationError, status.HTTP_404_NOT_FOUND),
    (EmbeddingDimensionError, status.HTTP_502_BAD_GATEWAY),
    (UpstreamCallError, status.HTTP_502_BAD_GATEWAY),
]

ERROR_RESPONSES = {
    code: {"model": ErrorResponse} for _, code in ERROR_STATUS
}


def to_error_response(error: DomainException) -> JSONResponse:
    status_code = next(
        (code for exc_type, code in ERROR_STATUS if isinstance(error, exc_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    context = {}
    if isinstance(error, NoValidCollectionsError):
        context["requested"] = error.requested
    elif isinstance(error, EmbeddingDimensionError):
        context.update(expected=error.expected, actual=error.actual)
    body = ErrorResponse(error=type(error).__name__, detail=str(error), context=context)
    return JSONResponse(status_code=status_code, content=body.model_dump())


@router.post("/{command}", responses=ERROR_RESPONSES)
async def call_channel(
    command: str,
    args: Optional[Dict[str, Any]] = Body(None),
    channel: VectorSearchChannel = Depends(get_vector_search_channel),
):
    """
    Invoke a channel command. The only command is `search`.
    """
    try:
        return await channel.call(command, args)
    except DomainException as e:
        return to_error_response(e)


@router.get("/events/{event}", responses=ERROR_RESPONSES)
async def listen_channel(
    event: str,
    channel: VectorSearchChannel = Depends(get_vector_search_channel),
):
    """
    Subscribe to a channel event as server-sent events. The only event is `onSearchResult`.
    """
    try:
        stream = channel.listen(event)
    except UnknownOperationError as e:
        return to_error_response(e)

    async def event_generator():
        async for results in stream:
            yield f"data: {json.dumps(results)}\n\n"

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )

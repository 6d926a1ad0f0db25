from fastapi import APIRouter, Depends, HTTPException, Request

from server.dependencies.auth import verify_api_key
from server.models.requests import ChatRequest, MemorySyncRequest, RearrangeRequest
from server.models.responses import PurgeResponse, SyncResponse
from shared.clients.ClientErrors import ClientRequestError
from shared.clients.vector.VectorErrors import VectorSourceError, get_error_message
from shared.models.memory import ChatStats, RearrangeResult, VectorizeProgress

router = APIRouter(tags=["memory"])


def _resolve_chat_id(request: Request, body: ChatRequest) -> str | None:
    return body.chat_id or request.app.state.chat_context.get_chat_id()


@router.post("/memory/sync")
async def sync_chat(request: Request, body: MemorySyncRequest, _: None = Depends(verify_api_key)) -> SyncResponse:
    """Synchronize one batch of a chat. Called whenever the chat changes.

    Args:
        request (Request): FastAPI request (provides app.state.sync_service).
        body (MemorySyncRequest): The chat id, its messages and the batch size.
        _ (None): Auth dependency result (unused).

    Returns:
        SyncResponse: Remaining new messages, or None if nothing was done.
    """
    chat_id = _resolve_chat_id(request, body)
    remaining = await request.app.state.sync_service.synchronize_chat(chat_id, body.messages, body.batch_size)
    return SyncResponse(chat_id=chat_id, remaining=remaining)


@router.post("/memory/vectorize-all")
async def vectorize_all(request: Request, body: ChatRequest, _: None = Depends(verify_api_key)) -> VectorizeProgress:
    """Synchronize a whole chat, batch by batch."""
    chat_id = _resolve_chat_id(request, body)
    return await request.app.state.sync_service.vectorize_all(chat_id, body.messages)


@router.post("/memory/purge")
async def purge_chat(request: Request, body: ChatRequest, _: None = Depends(verify_api_key)) -> PurgeResponse:
    """Remove the collection of a chat, e.g. after the chat was deleted."""
    chat_id = _resolve_chat_id(request, body)
    return PurgeResponse(purged=await request.app.state.sync_service.purge_chat(chat_id))


@router.post("/memory/stats")
async def chat_stats(request: Request, body: ChatRequest, _: None = Depends(verify_api_key)) -> ChatStats:
    """Count the stored hashes of a chat and mark the messages already stored."""
    chat_id = _resolve_chat_id(request, body)
    if not chat_id:
        raise HTTPException(status_code=400, detail="No chat selected")
    try:
        return await request.app.state.sync_service.get_stats(chat_id, body.messages)
    except VectorSourceError as e:
        raise HTTPException(status_code=400, detail=get_error_message(e))
    except ClientRequestError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.post("/interceptor/rearrange")
async def rearrange_chat(request: Request, body: RearrangeRequest, _: None = Depends(verify_api_key)) -> RearrangeResult:
    """Generation interceptor: retrieve relevant content and rearrange the transcript.

    Failures never block generation; the transcript is returned as far as it got.
    """
    chat_id = _resolve_chat_id(request, body)
    return await request.app.state.retrieval_service.rearrange_chat(
        chat_id, body.messages, body.data_bank, body.world_info,
    )

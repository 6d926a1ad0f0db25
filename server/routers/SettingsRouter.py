from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from pydantic import ValidationError

from server.dependencies.auth import verify_api_key
from server.models.requests import ContextRequest
from server.models.responses import ContextResponse, NotificationsResponse
from shared.models.settings import VectorSettings

router = APIRouter(tags=["settings"])


@router.get("/settings")
async def get_settings(request: Request, _: None = Depends(verify_api_key)) -> VectorSettings:
    """Return the current vector memory settings."""
    return request.app.state.settings_store.get()


@router.put("/settings")
async def update_settings(
    request: Request,
    body: dict[str, Any] = Body(...),
    _: None = Depends(verify_api_key),
) -> VectorSettings:
    """Apply a partial settings update.

    Args:
        request (Request): FastAPI request (provides app.state.settings_store).
        body (dict[str, Any]): Field name -> new value. Unknown fields are ignored.
        _ (None): Auth dependency result (unused).

    Returns:
        VectorSettings: The settings now in effect.
    """
    try:
        return request.app.state.settings_store.update(body)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False))


@router.put("/context")
async def update_context(request: Request, body: ContextRequest, _: None = Depends(verify_api_key)) -> ContextResponse:
    """Set the active chat and whether a generation is running."""
    chat_context = request.app.state.chat_context
    chat_context.set_chat_id(body.chat_id)
    chat_context.set_generating(body.generating)
    return ContextResponse(chat_id=chat_context.get_chat_id(), generating=chat_context.is_generating())


@router.get("/notifications")
async def get_notifications(request: Request, _: None = Depends(verify_api_key)) -> NotificationsResponse:
    """Return the recent notifications, oldest first."""
    entries = request.app.state.notifications.get_entries()
    return NotificationsResponse(notifications=entries, total=len(entries))

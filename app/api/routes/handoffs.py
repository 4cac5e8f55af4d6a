"""Handoff API endpoints bridging the web form to the bot."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from app.api.deps import get_handoff_store
from app.core.exceptions import NotFoundError
from app.infrastructure.handoff_store import HandoffStore

router = APIRouter()


class HandoffCreate(BaseModel):
    """Payload stored by the web form before redirecting to the bot."""

    session_key: str = Field(..., min_length=8, max_length=64)
    payload: dict[str, Any]


class HandoffResponse(BaseModel):
    """Payload taken by the bot."""

    session_key: str
    payload: dict[str, Any]


@router.post("", status_code=status.HTTP_204_NO_CONTENT)
async def store_handoff(
    body: HandoffCreate,
    store: Annotated[HandoffStore, Depends(get_handoff_store)],
) -> None:
    """Store a pending submission under a session key."""
    await store.put(body.session_key, body.payload)


@router.post("/{session_key}/take", response_model=HandoffResponse)
async def take_handoff(
    session_key: str,
    store: Annotated[HandoffStore, Depends(get_handoff_store)],
) -> HandoffResponse:
    """Take a pending submission. Works once per key."""
    payload = await store.take(session_key)
    if payload is None:
        raise NotFoundError("Handoff expired or already used", details={"session_key": session_key})
    return HandoffResponse(session_key=session_key, payload=payload)

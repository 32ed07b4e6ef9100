"""Chat relay endpoint"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sse_starlette.sse import EventSourceResponse

from models.chat import ChatRequest, to_sse
from services.chat_relay import ChatStreamRelay
from services.errors import ValidationError

from .deps import get_relay

router = APIRouter()


@router.post("/chat")
async def chat_stream(request: ChatRequest, relay: ChatStreamRelay = Depends(get_relay)):
    """Send a chat message and stream the CLI's response (SSE)"""
    try:
        session = relay.open(request)
    except ValidationError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    async def event_generator():
        async for event in session.events():
            yield to_sse(event)

    return EventSourceResponse(
        event_generator(),
        ping=relay.keepalive_seconds,
        headers={"Cache-Control": "no-cache"},
    )

"""Host relay endpoints: Writer context and add-to-chat"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from models.context import AddToChatItem, WriterContext
from services.context_relay import AddToChatQueue, WriterContextStore

from .deps import get_add_to_chat, get_context_store

router = APIRouter()


@router.post("/wps-context")
async def push_context(
    context: WriterContext, store: WriterContextStore = Depends(get_context_store)
) -> dict[str, Any]:
    """Host push of the current document context"""
    if not store.update(context):
        return {"ok": True, "skipped": True}
    return {"ok": True}


@router.get("/wps-context")
async def read_context(store: WriterContextStore = Depends(get_context_store)) -> dict[str, Any]:
    return store.latest().model_dump(by_alias=True)


@router.post("/add-to-chat")
async def add_to_chat(
    item: AddToChatItem, queue: AddToChatQueue = Depends(get_add_to_chat)
) -> dict[str, Any]:
    queue.push(item)
    return {"ok": True}


@router.get("/add-to-chat/poll")
async def poll_add_to_chat(queue: AddToChatQueue = Depends(get_add_to_chat)) -> dict[str, Any]:
    item = queue.poll()
    if item is None:
        return {"pending": False}
    return {"pending": True, **item.model_dump(by_alias=True)}

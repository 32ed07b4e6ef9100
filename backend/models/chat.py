"""Chat relay data models"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One turn of the conversation"""

    model_config = ConfigDict(frozen=True)

    role: str
    content: str = ""


class Attachment(BaseModel):
    """File attached to a chat request"""

    model_config = ConfigDict(frozen=True)

    name: str
    content: str = ""
    type: str = "text"  # text, image, table
    size: int | None = None


class ChatRequest(BaseModel):
    """Request for the streaming chat relay"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    messages: list[ChatMessage] = []
    context: str | None = None  # Free-text Writer context built by the UI
    model: str | None = None
    mode: str | None = None
    attachments: list[Attachment] = []
    web_search: bool = Field(False, alias="webSearch")


class CodeBlock(BaseModel):
    """Fenced code block extracted from a completed response"""

    model_config = ConfigDict(populate_by_name=True)

    language: str
    code: str
    task_id: str | None = Field(None, alias="taskId")


# ---------------------------------------------------------------------------
# SSE frames
# ---------------------------------------------------------------------------


class ModeEvent(BaseModel):
    type: Literal["mode"] = "mode"
    mode: str
    enforcement: dict[str, Any] = {}


class TokenEvent(BaseModel):
    type: Literal["token"] = "token"
    text: str


class ThinkingEvent(BaseModel):
    type: Literal["thinking"] = "thinking"
    text: str


class DoneEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: Literal["done"] = "done"
    full_text: str = Field("", alias="fullText")
    code_blocks: list[CodeBlock] | None = Field(None, alias="codeBlocks")
    suggest_agent_switch: bool | None = Field(None, alias="suggestAgentSwitch")


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    message: str


StreamEvent = Annotated[
    Union[ModeEvent, TokenEvent, ThinkingEvent, DoneEvent, ErrorEvent],
    Field(discriminator="type"),
]


def to_sse(event: BaseModel) -> dict[str, str]:
    """Render a stream event as an sse-starlette message dict"""
    return {"data": event.model_dump_json(by_alias=True, exclude_none=True)}

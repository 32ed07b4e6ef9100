"""Models module - Pydantic data models"""

from .chat import (
    Attachment,
    ChatMessage,
    ChatRequest,
    CodeBlock,
    DoneEvent,
    ErrorEvent,
    ModeEvent,
    StreamEvent,
    ThinkingEvent,
    TokenEvent,
)
from .bridge import (
    CodeResult,
    CodeResultResponse,
    CodeTask,
    PendingCodeResponse,
    ReportResultRequest,
    SubmitCodeRequest,
    SubmitCodeResponse,
)
from .context import AddToChatItem, OutlineItem, SelectionContext, WriterContext
from .definitions import (
    CommandDefinition,
    ModeEnforcement,
    QuickAction,
    SkillContext,
    SkillDefinition,
)
from .diff import DiffResult, DocumentSnapshot, ParagraphChange

__all__ = [
    # Chat models
    "Attachment",
    "ChatMessage",
    "ChatRequest",
    "CodeBlock",
    "DoneEvent",
    "ErrorEvent",
    "ModeEvent",
    "StreamEvent",
    "ThinkingEvent",
    "TokenEvent",
    # Bridge models
    "CodeResult",
    "CodeResultResponse",
    "CodeTask",
    "PendingCodeResponse",
    "ReportResultRequest",
    "SubmitCodeRequest",
    "SubmitCodeResponse",
    # Writer context models
    "AddToChatItem",
    "OutlineItem",
    "SelectionContext",
    "WriterContext",
    # Definition models
    "CommandDefinition",
    "ModeEnforcement",
    "QuickAction",
    "SkillContext",
    "SkillDefinition",
    # Diff models
    "DiffResult",
    "DocumentSnapshot",
    "ParagraphChange",
]

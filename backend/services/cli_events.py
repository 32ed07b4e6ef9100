"""Upstream events emitted by ``claude -p --output-format stream-json``"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class TextDelta:
    text: str


@dataclass(frozen=True)
class ThinkingDelta:
    text: str


@dataclass(frozen=True)
class FinalResult:
    text: str


@dataclass(frozen=True)
class Unrecognized:
    """Any event the relay does not act on (system, assistant, tool use...)"""


CliEvent = Union[TextDelta, ThinkingDelta, FinalResult, Unrecognized]

UNRECOGNIZED = Unrecognized()


def classify(payload: Any) -> CliEvent:
    """Map one decoded stream-json line onto a relay event"""
    match payload:
        case {
            "type": "stream_event",
            "event": {
                "type": "content_block_delta",
                "delta": {"type": "text_delta", "text": str(text)},
            },
        } if text:
            return TextDelta(text)
        case {
            "type": "stream_event",
            "event": {
                "type": "content_block_delta",
                "delta": {"type": "thinking_delta", "thinking": str(thinking)},
            },
        } if thinking:
            return ThinkingDelta(thinking)
        case {"type": "result", "result": str(result)} if result:
            return FinalResult(result)
        case _:
            return UNRECOGNIZED

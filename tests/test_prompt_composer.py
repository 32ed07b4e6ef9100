"""Tests for prompt assembly."""

from __future__ import annotations

import base64
from datetime import date

from models.chat import Attachment, ChatMessage
from services.prompt_composer import IMAGE_PREVIEW_CHARS, PromptComposer

TODAY = date(2026, 3, 14)


def _messages(*pairs: tuple[str, str]) -> list[ChatMessage]:
    return [ChatMessage(role=role, content=content) for role, content in pairs]


class TestCompose:
    def test_section_order(self, registry):
        prompt = PromptComposer().compose(
            _messages(("user", "first question"), ("assistant", "first answer"), ("user", "make a table")),
            today=TODAY,
            mode_definition=registry.modes["agent"],
            matched=[registry.skills["style-guide"], registry.skills["table-format"]],
            preferences={"tone": "formal"},
            context="Document: report.docx",
            attachments=[Attachment(name="notes.txt", content="note body")],
        )

        markers = [
            "Today's date is 2026-03-14.",
            "Writer core API",
            "AGENT MODE BODY",
            "STYLE GUIDE BODY",
            "TABLE BODY",
            "[User preferences]\n- tone: formal",
            "[Current Writer context]\nDocument: report.docx",
            "[User attachments]\n--- notes.txt ---\nnote body",
            "[Conversation history]\nUser: first question\n\nAssistant: first answer",
            "User: make a table",
        ]
        positions = [prompt.index(m) for m in markers]
        assert positions == sorted(positions)
        assert prompt.endswith("User: make a table")

    def test_is_deterministic(self, registry):
        kwargs = dict(
            today=TODAY,
            mode_definition=registry.modes["ask"],
            matched=[registry.skills["style-guide"]],
            preferences={"a": 1},
            context="ctx",
        )
        messages = _messages(("user", "hi"))
        composer = PromptComposer()
        assert composer.compose(messages, **kwargs) == composer.compose(messages, **kwargs)

    def test_optional_sections_omitted(self):
        prompt = PromptComposer().compose(_messages(("user", "hello")), today=TODAY)
        assert "[User preferences]" not in prompt
        assert "[Current Writer context]" not in prompt
        assert "[Conversation history]" not in prompt
        assert "[User attachments]" not in prompt
        assert prompt.endswith("User: hello")

    def test_image_attachment_is_bounded(self):
        raw = bytes(range(256)) * 40
        encoded = base64.b64encode(raw).decode()
        prompt = PromptComposer().compose(
            _messages(("user", "rebuild this table")),
            today=TODAY,
            attachments=[
                Attachment(name="scan.JPG", content=f"data:image/jpeg;base64,{encoded}", type="image")
            ],
        )

        assert "[User uploaded 1 image(s)]" in prompt
        assert f"data:image/jpeg;base64,{encoded[:IMAGE_PREVIEW_CHARS]}..." in prompt
        assert f"({len(raw)} bytes" in prompt
        assert encoded[: IMAGE_PREVIEW_CHARS + 1] not in prompt

    def test_image_uses_declared_size(self):
        prompt = PromptComposer().compose(
            _messages(("user", "x")),
            today=TODAY,
            attachments=[Attachment(name="a.png", content="iVBORw0KGgo=", type="image", size=4242)],
        )
        assert "(4242 bytes" in prompt

    def test_text_and_image_attachments_split(self):
        prompt = PromptComposer().compose(
            _messages(("user", "x")),
            today=TODAY,
            attachments=[
                Attachment(name="a.png", content="iVBORw0KGgo=", type="image"),
                Attachment(name="data.csv", content="a,b\n1,2", type="table"),
            ],
        )
        assert "--- data.csv ---\na,b\n1,2" in prompt
        assert "--- a.png ---" not in prompt
        assert prompt.index("[User attachments]") < prompt.index("[User uploaded 1 image(s)]")

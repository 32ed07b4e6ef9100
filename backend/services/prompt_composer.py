"""
Prompt Composer - Build the full prompt sent to the model CLI on stdin
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping, Sequence
from datetime import date

from models.chat import Attachment, ChatMessage
from models.definitions import SkillDefinition

IMAGE_PREVIEW_CHARS = 200

IMAGE_MIME_TYPES = {
    "jpg": "jpeg",
    "jpeg": "jpeg",
    "png": "png",
    "gif": "gif",
    "webp": "webp",
    "bmp": "bmp",
    "svg": "svg+xml",
}

PREAMBLE = """You are Claude, an AI document assistant embedded in WPS Office Writer. Your code runs in the WPS plugin host context with synchronous access to the full Writer JS API.
Today's date is {today}.

## Context priority (most important)
Every request carries the current Writer context: document name, selection text, outline and paragraph structure.
- Operate on the current selection unless the user explicitly asks for the whole document
- Do not overwrite content the user has not selected
- Use Application.ActiveDocument and Application.Selection to work with the document

## Code contract (mandatory)
- Code runs inside `new Function(code)()`
- Declare variables with `var` (let/const are not supported)
- At most one code block per reply
- The last line of the code must return a result string
- Keep the code under 3000 characters

## Writer core API
```
Application.ActiveDocument    - the active document
Application.Selection         - current selection / cursor
Document.Content              - whole-document Range
Document.Paragraphs           - paragraph collection
Document.Tables               - table collection
Selection.Text                - selected text
Selection.TypeText(text)      - type at the cursor
Selection.InsertAfter(text)   - insert after the selection
Range.Font                    - font formatting
Range.ParagraphFormat         - paragraph formatting
Range.Style                   - style
```

"""

IMAGE_INSTRUCTION = (
    "Complete the task from the image descriptions and the user's instruction. "
    "If the user asks to rebuild a table or layout shown in an image, reproduce "
    "its layout and fields as closely as possible.\n\n"
)


class PromptComposer:
    """Assemble the system prompt, context and conversation into one string"""

    def compose(
        self,
        messages: Sequence[ChatMessage],
        *,
        today: date,
        mode_definition: SkillDefinition | None = None,
        matched: Sequence[SkillDefinition] = (),
        preferences: Mapping[str, object] | None = None,
        context: str | None = None,
        attachments: Sequence[Attachment] = (),
    ) -> str:
        parts = [self.build_system_prompt(today, mode_definition, matched), "\n"]

        if preferences:
            parts.append("[User preferences]\n")
            parts.extend(f"- {key}: {value}\n" for key, value in preferences.items())
            parts.append("\n")

        if context:
            parts.append(f"[Current Writer context]\n{context}\n\n")

        parts.append(self.render_attachments(attachments))
        parts.append(self.render_history(messages[:-1]))
        parts.append(f"User: {messages[-1].content}")
        return "".join(parts)

    def build_system_prompt(
        self,
        today: date,
        mode_definition: SkillDefinition | None,
        matched: Sequence[SkillDefinition],
    ) -> str:
        prompt = PREAMBLE.format(today=today.isoformat())
        if mode_definition is not None and mode_definition.body:
            prompt += mode_definition.body + "\n\n"
        for skill in matched:
            prompt += skill.body + "\n\n"
        return prompt

    def render_attachments(self, attachments: Sequence[Attachment]) -> str:
        text_atts = [a for a in attachments if a.type != "image"]
        image_atts = [a for a in attachments if a.type == "image"]
        out = ""

        if text_atts:
            out += "[User attachments]\n"
            for att in text_atts:
                out += f"--- {att.name} ---\n{att.content}\n\n"

        if image_atts:
            out += f"[User uploaded {len(image_atts)} image(s)]\n"
            for att in image_atts:
                out += self.describe_image(att)
            out += IMAGE_INSTRUCTION
        return out

    def describe_image(self, att: Attachment) -> str:
        """Name, byte size and a bounded prefix of the encoded data"""
        data = att.content
        if data.startswith("data:") and "," in data:
            data = data.split(",", 1)[1]
        if not data:
            return f"Image {att.name}: no data, skipped\n"

        ext = att.name.rsplit(".", 1)[-1].lower() if "." in att.name else "png"
        mime = IMAGE_MIME_TYPES.get(ext, "png")
        size = att.size if att.size is not None else _decoded_size(data)
        return (
            f"Image {att.name}: data:image/{mime};base64,{data[:IMAGE_PREVIEW_CHARS]}... "
            f"({size} bytes, passed as attachment)\n"
        )

    def render_history(self, history: Sequence[ChatMessage]) -> str:
        if not history:
            return ""
        out = "[Conversation history]\n"
        for m in history:
            role = "User" if m.role == "user" else "Assistant"
            out += f"{role}: {m.content}\n\n"
        return out


def _decoded_size(data: str) -> int:
    try:
        return len(base64.b64decode(data, validate=False))
    except (binascii.Error, ValueError):
        return len(data) * 3 // 4

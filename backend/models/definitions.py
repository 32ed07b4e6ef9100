"""Skill, mode and command definition models

Definitions are parsed once at startup from Markdown resources with YAML
frontmatter and are read-only afterwards. Field names follow the camelCase
keys used in the frontmatter.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SkillContext(BaseModel):
    """Matching rules for a skill"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    always: bool = False
    keywords: list[str] = []
    has_selection: bool = Field(False, alias="hasSelection")
    has_headings: bool = Field(False, alias="hasHeadings")
    min_paragraphs: int | None = Field(None, alias="minParagraphs")
    min_char_count: int | None = Field(None, alias="minCharCount")


class ModeEnforcement(BaseModel):
    """Behaviour switches a mode imposes on the relay"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    code_bridge: bool = Field(True, alias="codeBridge")
    code_block_render: bool = Field(True, alias="codeBlockRender")
    max_turns: int | None = Field(None, alias="maxTurns")
    auto_execute: bool = Field(False, alias="autoExecute")
    strip_code_blocks: bool = Field(False, alias="stripCodeBlocks")
    plan_ui: bool = Field(False, alias="planUI")


class QuickAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    icon: str = ""
    label: str
    prompt: str


class SkillDefinition(BaseModel):
    """A skill, connector, workflow or mode definition"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    description: str = ""
    tags: list[str] = []
    modes: list[str] | None = None
    context: SkillContext = SkillContext()
    enforcement: ModeEnforcement = ModeEnforcement()
    default: bool = False
    quick_actions: list[QuickAction] = Field(default_factory=list, alias="quickActions")
    body: str = ""


class CommandDefinition(BaseModel):
    """A slash command offered by the UI"""

    model_config = ConfigDict(frozen=True)

    id: str
    icon: str = "📌"
    label: str
    description: str = ""
    scope: str = "general"
    prompt: str = ""

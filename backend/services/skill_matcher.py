"""Select the skill definitions that apply to a chat request"""

from __future__ import annotations

from collections.abc import Mapping

from models.context import WriterContext
from models.definitions import SkillContext, SkillDefinition


def match_skills(
    definitions: Mapping[str, SkillDefinition],
    message: str,
    context: WriterContext | None = None,
    mode: str | None = None,
) -> list[SkillDefinition]:
    """Return matching definitions in definition order (not ranked)"""
    matched = []
    lowered = message.lower()
    for skill in definitions.values():
        if mode and skill.modes is not None and mode not in skill.modes:
            continue
        rules = skill.context
        if rules.always:
            matched.append(skill)
            continue
        if _keyword_hit(rules, lowered) or _context_hit(rules, context):
            matched.append(skill)
    return matched


def _keyword_hit(rules: SkillContext, lowered_message: str) -> bool:
    return any(kw.lower() in lowered_message for kw in rules.keywords if kw)


def _context_hit(rules: SkillContext, context: WriterContext | None) -> bool:
    if context is None or context.selection is None:
        return False
    sel = context.selection
    if rules.has_selection and sel.has_selection:
        return True
    if rules.has_headings and context.outline:
        return True
    if rules.min_paragraphs and sel.paragraph_count >= rules.min_paragraphs:
        return True
    if rules.min_char_count and sel.char_count >= rules.min_char_count:
        return True
    return False

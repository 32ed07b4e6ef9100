"""
Definition loader - skills, modes, connectors, workflows and commands

Definitions are Markdown files with YAML frontmatter:

```markdown
---
name: table-format
description: "Format tables in the document"
modes: [agent]
context:
  keywords: ["table", "grid"]
  hasSelection: true
---

Instructions injected into the prompt...
```

Skills live in ``<skills_dir>/<group>/<id>/SKILL.md`` and commands in
``<commands_dir>/<id>.md``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as ModelValidationError

from models.definitions import CommandDefinition, SkillDefinition

logger = logging.getLogger(__name__)

FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*\n?(.*)$", re.DOTALL)

SKILL_GROUPS = ("bundled", "modes", "connectors", "workflows")
DEFAULT_MODE = "agent"


def parse_frontmatter(raw: str) -> tuple[dict[str, Any], str]:
    """Split a resource into (frontmatter, body)"""
    match = FRONTMATTER_PATTERN.match(raw)
    if not match:
        return {}, raw

    body = match.group(2).strip()
    try:
        frontmatter = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as e:
        logger.warning("Invalid frontmatter: %s", e)
        return {}, body
    if not isinstance(frontmatter, dict):
        return {}, body
    return frontmatter, body


@dataclass(frozen=True)
class DefinitionRegistry:
    """Read-only definition tables shared by all requests"""

    skills: dict[str, SkillDefinition] = field(default_factory=dict)
    modes: dict[str, SkillDefinition] = field(default_factory=dict)
    connectors: dict[str, SkillDefinition] = field(default_factory=dict)
    workflows: dict[str, SkillDefinition] = field(default_factory=dict)
    commands: list[CommandDefinition] = field(default_factory=list)

    def resolve_mode(self, mode: str | None) -> tuple[str, SkillDefinition | None]:
        """Return (mode id, mode definition), falling back to the agent mode"""
        current = mode or DEFAULT_MODE
        definition = self.modes.get(current) or self.modes.get(DEFAULT_MODE)
        return current, definition

    def commands_for(self, scope: str | None = None) -> list[CommandDefinition]:
        if not scope:
            return list(self.commands)
        return [c for c in self.commands if c.scope == scope]


class DefinitionLoader:
    """Loads definition resources from disk"""

    def __init__(self, skills_dir: str | Path, commands_dir: str | Path):
        self.skills_dir = Path(skills_dir)
        self.commands_dir = Path(commands_dir)

    def load(self) -> DefinitionRegistry:
        groups = {group: self.load_group(group) for group in SKILL_GROUPS}
        registry = DefinitionRegistry(
            skills=groups["bundled"],
            modes=groups["modes"],
            connectors=groups["connectors"],
            workflows=groups["workflows"],
            commands=self.load_commands(),
        )
        logger.info(
            "Loaded %d skills (%s), %d modes (%s), %d connectors, %d workflows, %d commands",
            len(registry.skills),
            ", ".join(registry.skills),
            len(registry.modes),
            ", ".join(registry.modes),
            len(registry.connectors),
            len(registry.workflows),
            len(registry.commands),
        )
        return registry

    def load_group(self, group: str) -> dict[str, SkillDefinition]:
        """Load every ``<group>/<id>/SKILL.md``, ordered by directory name"""
        group_dir = self.skills_dir / group
        definitions: dict[str, SkillDefinition] = {}
        if not group_dir.is_dir():
            return definitions

        for skill_dir in sorted(p for p in group_dir.iterdir() if p.is_dir()):
            skill_file = skill_dir / "SKILL.md"
            if not skill_file.exists():
                continue
            definition = self.load_skill(skill_file, skill_dir.name)
            if definition is not None:
                definitions[skill_dir.name] = definition
        return definitions

    def load_skill(self, path: Path, skill_id: str) -> SkillDefinition | None:
        try:
            frontmatter, body = parse_frontmatter(path.read_text(encoding="utf-8"))
        except OSError as e:
            logger.error("Cannot read %s: %s", path, e)
            return None

        data = {**frontmatter, "id": skill_id, "body": body.strip()}
        data["name"] = frontmatter.get("name") or skill_id
        try:
            return SkillDefinition.model_validate(data)
        except ModelValidationError as e:
            logger.error("Skipping %s: %s", path, e)
            return None

    def load_commands(self) -> list[CommandDefinition]:
        commands: list[CommandDefinition] = []
        if not self.commands_dir.is_dir():
            return commands

        for path in sorted(self.commands_dir.glob("*.md")):
            try:
                frontmatter, body = parse_frontmatter(path.read_text(encoding="utf-8"))
                commands.append(
                    CommandDefinition(
                        id=path.stem,
                        icon=frontmatter.get("icon") or "📌",
                        label=frontmatter.get("label") or path.stem,
                        description=frontmatter.get("description") or "",
                        scope=frontmatter.get("scope") or "general",
                        prompt=body.strip(),
                    )
                )
            except (OSError, ModelValidationError) as e:
                logger.error("Skipping command %s: %s", path, e)
        return commands

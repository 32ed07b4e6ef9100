"""Skill, mode, command and memory endpoints"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException

from services.memory_store import PreferenceStore
from services.skill_loader import DefinitionRegistry

from .deps import get_memory, get_registry

router = APIRouter()


@router.get("/skills")
async def list_skills(registry: DefinitionRegistry = Depends(get_registry)) -> list[dict[str, Any]]:
    """List bundled skills (debugging aid)"""
    return [
        {
            "id": skill_id,
            "name": skill.name,
            "description": skill.description,
            "tags": skill.tags,
            "context": skill.context.model_dump(by_alias=True),
        }
        for skill_id, skill in registry.skills.items()
    ]


@router.get("/modes")
async def list_modes(registry: DefinitionRegistry = Depends(get_registry)) -> list[dict[str, Any]]:
    """List interaction modes with their enforcement switches"""
    return [
        {
            "id": mode_id,
            "name": mode.name,
            "description": mode.description,
            "default": mode.default,
            "enforcement": mode.enforcement.model_dump(by_alias=True),
            "quickActions": [a.model_dump() for a in mode.quick_actions],
        }
        for mode_id, mode in registry.modes.items()
    ]


@router.get("/commands")
async def list_commands(
    scope: str | None = None, registry: DefinitionRegistry = Depends(get_registry)
) -> list[dict[str, Any]]:
    """List commands, optionally filtered by scope"""
    return [c.model_dump() for c in registry.commands_for(scope)]


@router.get("/memory")
async def get_memory_doc(memory: PreferenceStore = Depends(get_memory)) -> dict[str, Any]:
    return memory.load()


@router.post("/memory")
async def update_memory(
    changes: dict[str, Any] = Body(...), memory: PreferenceStore = Depends(get_memory)
) -> dict[str, Any]:
    """Merge fields into the stored memory"""
    try:
        memory.update(changes)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"ok": True}

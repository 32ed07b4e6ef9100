"""Configuration API endpoints"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from services.config_manager import ConfigManager

router = APIRouter()


class ConfigUpdateRequest(BaseModel):
    """Request to update configuration"""

    cli: dict | None = None
    stream: dict | None = None
    bridge: dict | None = None
    memoryFile: str | None = None
    logLevel: str | None = None


@router.get("")
async def get_config() -> dict[str, Any]:
    """Get current configuration"""
    return ConfigManager.get_instance().get_config()


@router.put("")
async def update_config(request: ConfigUpdateRequest) -> dict[str, Any]:
    """Update configuration; changes apply on the next restart"""
    config_manager = ConfigManager.get_instance()

    # Update only provided fields
    changes = request.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No configuration fields provided")

    try:
        config_manager.save_config(changes)
    except RuntimeError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return {"status": "success", "message": "Configuration updated"}

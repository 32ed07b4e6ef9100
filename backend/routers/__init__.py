"""Routers module - FastAPI route handlers"""

from . import catalog, chat, code, config, host

__all__ = ["catalog", "chat", "code", "config", "host"]

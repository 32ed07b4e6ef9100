"""
WPS Writer Relay - FastAPI Application Entry Point

1) Streams chat responses from the local claude CLI to the task pane (SSE).
2) Relays Writer context from the plugin host to the task pane.
3) Bridges code execution: task pane submits, plugin host polls and runs it,
   results come back through the relay.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routers import catalog, chat, code, config, host
from services.chat_relay import ChatStreamRelay
from services.code_bridge import CodeExecutionBridge
from services.config_manager import ConfigManager
from services.context_relay import AddToChatQueue, WriterContextStore
from services.logging_config import setup_logging
from services.memory_store import PreferenceStore
from services.skill_loader import DefinitionLoader

VERSION = "2.0.0"

logger = logging.getLogger(__name__)


def create_app(settings: dict[str, Any] | None = None) -> FastAPI:
    """Build the app; ``settings`` replaces the stored configuration when given"""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager - startup and shutdown logic"""
        cfg = settings if settings is not None else ConfigManager.get_instance().get_config()
        setup_logging(cfg.get("logLevel", "INFO"))
        logger.info("Starting WPS Writer relay...")

        registry = DefinitionLoader(cfg["skillsDir"], cfg["commandsDir"]).load()
        bridge = CodeExecutionBridge(result_ttl=float(cfg["bridge"]["resultTtlSeconds"]))
        memory = PreferenceStore(cfg["memoryFile"])
        context_store = WriterContextStore()

        app.state.config = cfg
        app.state.registry = registry
        app.state.bridge = bridge
        app.state.memory = memory
        app.state.context_store = context_store
        app.state.add_to_chat = AddToChatQueue()
        app.state.relay = ChatStreamRelay(
            cfg,
            registry,
            memory,
            bridge=bridge,
            context_store=context_store,
        )
        logger.info("CLI: %s, default model %s", app.state.relay.cli_path, app.state.relay.default_model)

        yield
        logger.info("Shutting down WPS Writer relay (%d tasks still queued)", bridge.pending_count())

    app = FastAPI(
        title="WPS Writer Relay",
        description="Chat relay and code execution bridge for the WPS Writer assistant",
        version=VERSION,
        lifespan=lifespan,
    )

    cors_origins = (settings or ConfigManager.get_instance().get_config()).get("corsOrigins", [])
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(chat.router, tags=["chat"])
    app.include_router(code.router, tags=["code-bridge"])
    app.include_router(host.router, tags=["host"])
    app.include_router(catalog.router, tags=["catalog"])
    app.include_router(config.router, prefix="/config", tags=["config"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        registry = app.state.registry
        return {
            "status": "ok",
            "version": VERSION,
            "skills": len(registry.skills),
            "modes": len(registry.modes),
            "connectors": len(registry.connectors),
            "workflows": len(registry.workflows),
            "commands": len(registry.commands),
            "skillNames": list(registry.skills),
            "modeNames": list(registry.modes),
            "pendingCode": app.state.bridge.pending_count(),
        }

    return app


app = create_app()


def run():
    import uvicorn

    server = ConfigManager.get_instance().get_config()["server"]
    uvicorn.run(app, host=server["host"], port=server["port"])


if __name__ == "__main__":
    run()

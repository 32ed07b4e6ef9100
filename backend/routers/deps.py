"""Accessors for the per-app components created in the lifespan hook"""

from __future__ import annotations

from fastapi import Request

from services.chat_relay import ChatStreamRelay
from services.code_bridge import CodeExecutionBridge
from services.context_relay import AddToChatQueue, WriterContextStore
from services.memory_store import PreferenceStore
from services.skill_loader import DefinitionRegistry


def get_bridge(request: Request) -> CodeExecutionBridge:
    return request.app.state.bridge


def get_relay(request: Request) -> ChatStreamRelay:
    return request.app.state.relay


def get_registry(request: Request) -> DefinitionRegistry:
    return request.app.state.registry


def get_memory(request: Request) -> PreferenceStore:
    return request.app.state.memory


def get_context_store(request: Request) -> WriterContextStore:
    return request.app.state.context_store


def get_add_to_chat(request: Request) -> AddToChatQueue:
    return request.app.state.add_to_chat

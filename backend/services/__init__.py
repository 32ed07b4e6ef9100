"""Services module - Business logic layer"""

from .bridge_client import BridgeClient, ExecutionOutcome
from .chat_relay import ChatSession, ChatStreamRelay
from .code_bridge import CodeExecutionBridge
from .config_manager import ConfigManager
from .context_relay import AddToChatQueue, WriterContextStore
from .diff_generator import DiffGenerator
from .host_poller import HostPoller
from .memory_store import PreferenceStore
from .prompt_composer import PromptComposer
from .skill_loader import DefinitionLoader, DefinitionRegistry
from .skill_matcher import match_skills

__all__ = [
    "AddToChatQueue",
    "BridgeClient",
    "ChatSession",
    "ChatStreamRelay",
    "CodeExecutionBridge",
    "ConfigManager",
    "DefinitionLoader",
    "DefinitionRegistry",
    "DiffGenerator",
    "ExecutionOutcome",
    "HostPoller",
    "PreferenceStore",
    "PromptComposer",
    "WriterContextStore",
    "match_skills",
]

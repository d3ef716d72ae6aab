from .executor import ToolExecutor, ToolHandler, ToolInputError, ToolResolutionError, ToolTransportError
from .llm_client import ChatBackend, ModelBackendError, OpenAICompatibleBackend
from .models import (
    ConversationMessage,
    DeltaChunk,
    DoneEvent,
    ErrorEvent,
    OutputEvent,
    SafetyVerdict,
    TextEvent,
    ToolCallEvent,
    ToolCallFragment,
    ToolCallRecord,
    ToolPayload,
    ToolResult,
    ToolResultEvent,
)
from .orchestrator import ConversationOrchestrator, ToolCallAssembler, TurnState, parse_tool_arguments
from .registry import ToolDeclaration, ToolRegistry
from .safety import SAFETY_REDIRECT_REASON, SafetyClassifier, SafetyClassifierProtocol
from .settings import AgentSettings, ConfigError, bootstrap_local_env, load_settings

__all__ = [
    "SAFETY_REDIRECT_REASON",
    "AgentSettings",
    "ChatBackend",
    "ConfigError",
    "ConversationMessage",
    "ConversationOrchestrator",
    "DeltaChunk",
    "DoneEvent",
    "ErrorEvent",
    "ModelBackendError",
    "OpenAICompatibleBackend",
    "OutputEvent",
    "SafetyClassifier",
    "SafetyClassifierProtocol",
    "SafetyVerdict",
    "TextEvent",
    "ToolCallAssembler",
    "ToolCallEvent",
    "ToolCallFragment",
    "ToolCallRecord",
    "ToolDeclaration",
    "ToolExecutor",
    "ToolHandler",
    "ToolInputError",
    "ToolPayload",
    "ToolRegistry",
    "ToolResolutionError",
    "ToolResult",
    "ToolResultEvent",
    "ToolTransportError",
    "TurnState",
    "bootstrap_local_env",
    "load_settings",
    "parse_tool_arguments",
]

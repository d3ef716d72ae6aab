from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Literal, Union


MESSAGE_ROLES = {"system", "user", "assistant", "tool"}
ERROR_KINDS = {"input", "resolution", "transport", "unknown_tool", "internal"}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ConversationMessage:
    role: str
    content: str | None
    tool_calls: list["ToolCallRecord"] | None = None
    tool_call_id: str | None = None

    def __post_init__(self) -> None:
        if self.role not in MESSAGE_ROLES:
            raise ValueError(f"Unsupported message role: {self.role}")

    def as_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            payload["tool_calls"] = [call.as_payload() for call in self.tool_calls]
        if self.tool_call_id is not None:
            payload["tool_call_id"] = self.tool_call_id
        return payload


@dataclass
class ToolCallRecord:
    id: str
    name: str
    arguments_raw: str = ""
    index: int | None = None

    def as_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments_raw},
        }


@dataclass(frozen=True)
class ToolCallFragment:
    id: str | None = None
    function_name: str | None = None
    arguments_fragment: str | None = None
    index: int | None = None


@dataclass(frozen=True)
class DeltaChunk:
    text: str | None = None
    tool_calls: tuple[ToolCallFragment, ...] = ()


@dataclass(frozen=True)
class SafetyVerdict:
    redirect: bool
    reason: str | None = None
    category: str | None = None
    language: str | None = None


@dataclass(frozen=True)
class ToolPayload:
    """Base for the per-tool result shapes; subclasses are frozen dataclasses."""

    tool: ClassVar[str] = ""

    def as_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


@dataclass(frozen=True)
class ToolResult:
    success: bool
    data: ToolPayload | None = None
    error: str | None = None
    error_kind: str | None = None

    @classmethod
    def ok(cls, data: ToolPayload) -> "ToolResult":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, kind: str) -> "ToolResult":
        if kind not in ERROR_KINDS:
            raise ValueError(f"Unknown error kind: {kind}")
        return cls(success=False, error=error, error_kind=kind)

    def as_envelope(self) -> dict[str, Any]:
        envelope: dict[str, Any] = {"success": self.success}
        if self.data is not None:
            envelope["data"] = self.data.as_dict()
        if self.error is not None:
            envelope["error"] = self.error
        return envelope

    def to_json(self) -> str:
        return json.dumps(self.as_envelope(), ensure_ascii=False)


@dataclass(frozen=True)
class TextEvent:
    data: str
    type: Literal["text"] = "text"

    def as_dict(self) -> dict[str, Any]:
        return {"type": self.type, "data": self.data}


@dataclass(frozen=True)
class ToolCallEvent:
    name: str
    arguments: str
    timestamp: str = field(default_factory=utc_timestamp)
    type: Literal["tool_call"] = "tool_call"

    def as_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "data": {"name": self.name, "arguments": self.arguments, "timestamp": self.timestamp},
        }


@dataclass(frozen=True)
class ToolResultEvent:
    name: str
    result: dict[str, Any]
    timestamp: str = field(default_factory=utc_timestamp)
    type: Literal["tool_result"] = "tool_result"

    def as_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "data": {"name": self.name, "result": self.result, "timestamp": self.timestamp},
        }


@dataclass(frozen=True)
class DoneEvent:
    type: Literal["done"] = "done"

    def as_dict(self) -> dict[str, Any]:
        return {"type": self.type}


@dataclass(frozen=True)
class ErrorEvent:
    error: str
    type: Literal["error"] = "error"

    def as_dict(self) -> dict[str, Any]:
        return {"type": self.type, "error": self.error}


OutputEvent = Union[TextEvent, ToolCallEvent, ToolResultEvent, DoneEvent, ErrorEvent]
TERMINAL_EVENT_TYPES = {"done", "error"}

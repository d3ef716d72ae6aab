from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping

from .models import ToolPayload, ToolResult
from .registry import ToolRegistry


logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], ToolPayload]


class ToolInputError(Exception):
    """Missing, empty or wrongly typed tool argument."""


class ToolResolutionError(Exception):
    """A named entity (medication, user) could not be resolved."""


class ToolTransportError(Exception):
    """The data collaborator behind a tool is unavailable."""


class ToolExecutor:
    def __init__(self, registry: ToolRegistry, handlers: Mapping[str, ToolHandler]) -> None:
        declared = set(registry.names())
        provided = set(handlers)
        missing = sorted(declared - provided)
        if missing:
            raise ValueError(f"Declared tools without a handler: {', '.join(missing)}")
        undeclared = sorted(provided - declared)
        if undeclared:
            raise ValueError(f"Handlers without a declaration: {', '.join(undeclared)}")
        self.registry = registry
        self._handlers = dict(handlers)

    def execute(self, name: str, args: dict[str, Any]) -> ToolResult:
        handler = self._handlers.get(name)
        if handler is None:
            return ToolResult.failure(f"Unknown tool: {name}", "unknown_tool")
        if not isinstance(args, dict):
            return ToolResult.failure("Tool arguments must be an object", "input")

        logger.info("tool call %s args=%s", name, json.dumps(args, ensure_ascii=False, default=str))
        try:
            return ToolResult.ok(handler(args))
        except ToolInputError as exc:
            return ToolResult.failure(str(exc), "input")
        except ToolResolutionError as exc:
            return ToolResult.failure(str(exc), "resolution")
        except ToolTransportError as exc:
            logger.error("tool %s transport failure: %s", name, exc)
            return ToolResult.failure(str(exc), "transport")
        except Exception as exc:
            logger.exception("tool %s failed", name)
            return ToolResult.failure(str(exc) or "Unknown error occurred", "internal")

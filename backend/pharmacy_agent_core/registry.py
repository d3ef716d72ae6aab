from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable


@dataclass(frozen=True)
class ToolDeclaration:
    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=lambda: {"type": "object", "properties": {}})
    # Context-only parameters filled by the orchestrator, never advertised to the model.
    injected_params: tuple[str, ...] = ()

    def as_openai_tool(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


class ToolRegistry:
    def __init__(self, declarations: Iterable[ToolDeclaration]) -> None:
        ordered = tuple(declarations)
        seen: set[str] = set()
        for declaration in ordered:
            if declaration.name in seen:
                raise ValueError(f"Duplicate tool declaration: {declaration.name}")
            for param in declaration.injected_params:
                if param in declaration.parameters.get("properties", {}):
                    raise ValueError(f"Injected parameter '{param}' must not be advertised by {declaration.name}")
            seen.add(declaration.name)
        self._declarations = ordered
        self._by_name = {declaration.name: declaration for declaration in ordered}

    @property
    def declarations(self) -> tuple[ToolDeclaration, ...]:
        return self._declarations

    def get(self, name: str) -> ToolDeclaration | None:
        return self._by_name.get(name)

    def names(self) -> list[str]:
        return [declaration.name for declaration in self._declarations]

    def as_payload(self) -> list[dict[str, Any]]:
        return [declaration.as_openai_tool() for declaration in self._declarations]

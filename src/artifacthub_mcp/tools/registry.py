"""Deterministic tool registration primitives."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from artifacthub_mcp.tools.results import ToolOutcome, ToolPayload, classify_failure

ToolHandler = Callable[[dict[str, object]], ToolPayload]


@dataclass(slots=True, frozen=True)
class ToolDispatchError(Exception):
    """Represents deterministic tool dispatch failures."""

    code: str
    message: str


@dataclass(slots=True, frozen=True)
class ToolSpec:
    """A registered tool with its published input schema."""

    name: str
    description: str
    input_schema: dict[str, object]
    action: str
    handler: ToolHandler

    def describe(self) -> dict[str, object]:
        """Return the tools/list entry for this tool."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass(slots=True)
class ToolRegistry:
    """In-memory tool registry preserving deterministic insertion order."""

    _specs: dict[str, ToolSpec] = field(default_factory=dict)

    def register(self, spec: ToolSpec) -> None:
        """Register a tool spec under its name."""
        self._specs[spec.name] = spec

    def get(self, name: str) -> ToolSpec | None:
        """Return a tool spec by name."""
        return self._specs.get(name)

    def names(self) -> tuple[str, ...]:
        """Return registered tool names in deterministic order."""
        return tuple(self._specs.keys())

    def describe(self) -> list[dict[str, object]]:
        """Return tools/list entries in registration order."""
        return [spec.describe() for spec in self._specs.values()]

    def dispatch(self, name: str, arguments: dict[str, object]) -> ToolOutcome:
        """Run a tool, turning every failure after argument validation into an outcome."""
        spec = self.get(name)
        if spec is None:
            raise ToolDispatchError(code="UNKNOWN_TOOL", message=f"Unknown tool: {name}")
        try:
            payload = spec.handler(arguments)
        except ToolDispatchError:
            raise
        except Exception as error:
            return ToolOutcome(failure=classify_failure(spec.action, error))
        return ToolOutcome(payload=payload)

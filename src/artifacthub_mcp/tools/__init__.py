"""MCP tool interfaces and registrations."""

from .registry import ToolDispatchError, ToolHandler, ToolRegistry, ToolSpec
from .rendering import render_outcome
from .results import ToolFailure, ToolOutcome

__all__ = [
    "ToolDispatchError",
    "ToolFailure",
    "ToolHandler",
    "ToolOutcome",
    "ToolRegistry",
    "ToolSpec",
    "render_outcome",
]

"""Name-keyed registry of tool implementations.

Tools are registered explicitly by the caller; there is no discovery. The
orchestrator resolves model-requested tool names against the registry on
every loop iteration.
"""

from collections.abc import Iterable
from typing import Any

from llm_helm.exceptions import DuplicateToolError, ToolNotFoundError
from llm_helm.protocol import Tool


class ToolRegistry:
    """Explicit registry of tools keyed by name."""

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> "ToolRegistry":
        """Register a tool implementation.

        Raises:
            DuplicateToolError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise DuplicateToolError(tool.name)
        self._tools[tool.name] = tool
        return self

    def get(self, name: str) -> Tool:
        """Resolve a tool by name.

        Raises:
            ToolNotFoundError: If no tool is registered under the name
        """
        try:
            return self._tools[name]
        except KeyError:
            raise ToolNotFoundError(name) from None

    def has(self, name: str) -> bool:
        return name in self._tools

    def all(self) -> list[Tool]:
        return list(self._tools.values())

    def definitions(self) -> list[dict[str, Any]]:
        """Tool definitions in registration order, as advertised to backends."""
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.input_schema,
            }
            for tool in self._tools.values()
        ]

    def __len__(self) -> int:
        return len(self._tools)

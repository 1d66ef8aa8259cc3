"""Adapter that exposes a plain callable as a Tool."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class FunctionTool:
    """Tool backed by a plain function.

    Attributes:
        name: Unique tool name
        description: What the tool does, shown to the model
        handler: Callable receiving the argument mapping and returning a result mapping
        input_schema: Schema of the expected arguments
    """

    name: str
    description: str
    handler: Callable[[dict[str, Any]], dict[str, Any]]
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def handle(self, arguments: dict[str, Any]) -> dict[str, Any]:
        return self.handler(arguments)

"""Collaborator protocol definitions.

The orchestrator only talks to backends and tools through these protocols,
so vendor adapters and tool implementations stay interchangeable.
"""

from typing import Any, Protocol, runtime_checkable

from llm_helm.messages import ChatRequest, Response


@runtime_checkable
class Backend(Protocol):
    """Protocol for a chat completion backend."""

    def chat(self, request: ChatRequest) -> Response:
        """Send a fully formed request and return the normalized response.

        Args:
            request: The immutable chat request

        Raises:
            BackendError: On any transport or vendor API failure, with the
                status code used for retry classification
        """
        ...


@runtime_checkable
class Tool(Protocol):
    """Protocol for a tool the model may invoke."""

    @property
    def name(self) -> str:
        """Unique name identifying the tool."""
        ...

    @property
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        ...

    @property
    def input_schema(self) -> dict[str, Any]:
        """Schema describing the expected arguments."""
        ...

    def handle(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Execute the tool.

        Args:
            arguments: Arguments supplied by the model

        Returns:
            JSON-representable result mapping
        """
        ...

"""Provider-agnostic request and response types.

These immutable value objects are the common vocabulary between the
orchestrator, the retry strategy and the backends. Each one converts to a
plain dict for logging, test assertions and failure diagnostics.
"""

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from llm_helm.exceptions import ConfigurationError, ToolExecutionError

_ABSENT = object()


class Role(StrEnum):
    """Conversation roles understood by every backend."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class ToolCall:
    """A single tool invocation requested by the model.

    Attributes:
        id: Backend-assigned identifier, echoed back with the result
        name: Name of the tool to invoke
        arguments: Parsed arguments for the tool
    """

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "arguments": self.arguments}


@dataclass(frozen=True)
class ToolResult:
    """The outcome of running one ToolCall.

    Attributes:
        tool_call_id: ID of the tool call this result answers
        name: Name of the tool that produced the result
        result: JSON-representable result mapping
    """

    tool_call_id: str
    name: str
    result: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"tool_call_id": self.tool_call_id, "name": self.name, "result": self.result}

    def to_json(self) -> str:
        """Encode the result as strict JSON.

        Raises:
            ToolExecutionError: If the result cannot be represented as JSON
        """
        try:
            return json.dumps(self.result, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise ToolExecutionError(
                f"Tool result for {self.name} could not be JSON encoded: {e}",
                tool_name=self.name,
            ) from e


@dataclass(frozen=True)
class Message:
    """An entry in a conversation.

    Attributes:
        role: Message role ("system", "user", "assistant", "tool")
        content: Message text content, possibly empty
        tool_calls: Tool calls requested by the model (assistant messages only)
        tool_call_id: ID of the tool call this message answers (tool messages only)
    """

    role: Role
    content: str = ""
    tool_calls: tuple[ToolCall, ...] | None = None
    tool_call_id: str | None = None

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "role", Role(self.role))
        except ValueError as e:
            raise ConfigurationError(f"Unknown message role: {self.role!r}") from e
        if self.tool_calls is not None:
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls: Sequence[ToolCall] | None = None) -> "Message":
        return cls(role=Role.ASSISTANT, content=content, tool_calls=tool_calls)

    @classmethod
    def tool(cls, result: ToolResult) -> "Message":
        """Build the tool-role message carrying a JSON-encoded tool result."""
        return cls(role=Role.TOOL, content=result.to_json(), tool_call_id=result.tool_call_id)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"role": str(self.role), "content": self.content}
        if self.tool_calls is not None:
            data["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            data["tool_call_id"] = self.tool_call_id
        return data


@dataclass(frozen=True)
class ChatRequest:
    """The complete, immutable intent for one backend call.

    Built fresh by the ChatBuilder on every loop iteration and handed to a
    Backend. Safe to cache or log without copying.

    Attributes:
        messages: Ordered conversation
        model: Model identifier, never empty
        temperature: Sampling temperature (None = backend default)
        tools: Tool definitions ({"name", "description", "parameters"}) to advertise
        schema: Output schema for structured responses
    """

    messages: tuple[Message, ...]
    model: str
    temperature: float | None = None
    tools: tuple[dict[str, Any], ...] = ()
    schema: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if not self.model:
            raise ConfigurationError("ChatRequest requires a non-empty model identifier.")
        object.__setattr__(self, "messages", tuple(self.messages))
        object.__setattr__(self, "tools", tuple(self.tools))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "messages": [m.to_dict() for m in self.messages],
            "model": self.model,
        }
        if self.temperature is not None:
            data["temperature"] = self.temperature
        if self.tools:
            data["tools"] = list(self.tools)
        if self.schema is not None:
            data["schema"] = self.schema
        return data


@dataclass(frozen=True)
class Response:
    """Normalized backend result.

    A response carrying tool calls has no guaranteed meaningful content.

    Attributes:
        content: Extracted text content
        raw: Unmodified backend payload, for diagnostics
        tool_calls: Tool calls requested by the model, or None
    """

    content: str
    raw: dict[str, Any] = field(default_factory=dict)
    tool_calls: tuple[ToolCall, ...] | None = None

    def __post_init__(self) -> None:
        if self.tool_calls is not None:
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    @property
    def has_tool_calls(self) -> bool:
        """Whether the model requested tool calls in this response."""
        return bool(self.tool_calls)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"content": self.content, "raw": self.raw}
        if self.tool_calls is not None:
            data["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        return data


@dataclass(frozen=True)
class StructuredResponse(Response):
    """Response carrying decoded, schema-validated output.

    When the structured value is a mapping its fields can be read directly:
    ``response["score"]``. Lookups into any other value, or of a missing key,
    return None rather than raising.
    """

    structured: Any = None

    def __getitem__(self, key: Any) -> Any:
        return self.get(key)

    def __contains__(self, key: Any) -> bool:
        return self.get(key, _ABSENT) is not _ABSENT

    def __setitem__(self, key: Any, value: Any) -> None:
        raise TypeError("StructuredResponse is immutable.")

    def __delitem__(self, key: Any) -> None:
        raise TypeError("StructuredResponse is immutable.")

    def get(self, key: Any, default: Any = None) -> Any:
        if not isinstance(self.structured, Mapping):
            return default
        try:
            return self.structured.get(key, default)
        except TypeError:
            # unhashable key
            return default

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["structured"] = self.structured
        return data

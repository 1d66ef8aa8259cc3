"""Exception hierarchy for llm-helm.

Every failure raised by the orchestration engine derives from HelmError so
callers can catch the whole family at once, or pick out the specific kind
they know how to handle.
"""

from typing import Any


class HelmError(Exception):
    """Base exception for all llm-helm errors."""


class ConfigurationError(HelmError):
    """Raised when required setup is missing or a setting is invalid."""


class BackendError(HelmError):
    """Raised when a backend or its transport fails.

    The status code drives retry classification: None or 0 means no response
    was received at all.
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class BackendExhaustedError(BackendError):
    """Raised when every backend and retry combination has failed."""

    def __init__(
        self,
        attempted: list[str],
        status_code: int | None = None,
    ):
        self.attempted = attempted
        super().__init__(
            f"All backends exhausted. Attempted: {', '.join(attempted)}",
            status_code=status_code,
        )


class ToolError(HelmError):
    """Base exception for tool registration and execution errors."""

    def __init__(self, message: str, tool_name: str | None = None):
        self.tool_name = tool_name
        super().__init__(message)


class ToolNotFoundError(ToolError):
    """Raised when the model requests a tool that is not registered."""

    def __init__(self, tool_name: str):
        super().__init__(f"Tool not found: {tool_name}", tool_name=tool_name)


class ToolExecutionError(ToolError):
    """Raised when a tool fails or returns a result that cannot be sent back."""


class DuplicateToolError(ToolError):
    """Raised when two tools are registered under the same name."""

    def __init__(self, tool_name: str):
        super().__init__(f"Duplicate tool name: {tool_name}", tool_name=tool_name)


class SchemaValidationError(HelmError):
    """Raised when structured output cannot be decoded or fails its schema.

    Carries the violations, the raw model output and the serialized request so
    callers can inspect what went wrong without re-running the request.
    """

    def __init__(
        self,
        message: str,
        validation_errors: list[str] | None = None,
        raw_output: str = "",
        request_context: dict[str, Any] | None = None,
    ):
        self.validation_errors = validation_errors or []
        self.raw_output = raw_output
        self.request_context = request_context or {}
        super().__init__(message)

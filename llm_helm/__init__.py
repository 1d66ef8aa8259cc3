"""llm-helm - provider-agnostic orchestration for LLM chat completions.

Describe a conversation, optional tools and an optional output schema once;
llm-helm runs the tool loop, retries and fails over between backends, and
repairs invalid structured output until it has a final answer.
"""

from llm_helm.chat import ChatBuilder
from llm_helm.exceptions import (
    BackendError,
    BackendExhaustedError,
    ConfigurationError,
    DuplicateToolError,
    HelmError,
    SchemaValidationError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
)
from llm_helm.helm import Helm
from llm_helm.messages import (
    ChatRequest,
    Message,
    Response,
    Role,
    StructuredResponse,
    ToolCall,
    ToolResult,
)
from llm_helm.protocol import Backend, Tool
from llm_helm.retry import RetryHandler
from llm_helm.schema import SchemaValidator
from llm_helm.settings import HelmSettings
from llm_helm.tools import FunctionTool, ToolRegistry

__all__ = [
    # Entry points
    "Helm",
    "HelmSettings",
    "ChatBuilder",
    # Protocols
    "Backend",
    "Tool",
    # Message types
    "ChatRequest",
    "Message",
    "Response",
    "Role",
    "StructuredResponse",
    "ToolCall",
    "ToolResult",
    # Components
    "FunctionTool",
    "RetryHandler",
    "SchemaValidator",
    "ToolRegistry",
    # Exceptions
    "HelmError",
    "BackendError",
    "BackendExhaustedError",
    "ConfigurationError",
    "DuplicateToolError",
    "SchemaValidationError",
    "ToolError",
    "ToolExecutionError",
    "ToolNotFoundError",
]

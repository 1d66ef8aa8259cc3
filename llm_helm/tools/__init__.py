"""Tool registration and adapters."""

from llm_helm.tools.function import FunctionTool
from llm_helm.tools.registry import ToolRegistry

__all__ = ["FunctionTool", "ToolRegistry"]

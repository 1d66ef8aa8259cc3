"""Chat request orchestration."""

from llm_helm.chat.builder import ChatBuilder
from llm_helm.chat.structured import OutcomeKind, StructuredOutcome, check_structured_output

__all__ = [
    "ChatBuilder",
    "OutcomeKind",
    "StructuredOutcome",
    "check_structured_output",
]

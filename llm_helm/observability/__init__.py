"""Observability infrastructure module.

This module provides monitoring for the orchestration engine:
- Structured logging with correlation IDs
- Prometheus counters for backend, tool and repair events
"""

from llm_helm.observability.logging import (
    configure_logging,
    correlation_scope,
    current_correlation_id,
    get_logger,
)
from llm_helm.observability.metrics import (
    record_backend_call,
    record_backend_retry,
    record_repair_attempt,
    record_tool_call,
)

__all__ = [
    "configure_logging",
    "correlation_scope",
    "current_correlation_id",
    "get_logger",
    "record_backend_call",
    "record_backend_retry",
    "record_repair_attempt",
    "record_tool_call",
]

"""Prometheus counters for orchestration events.

Counters live on the default registry so an embedding service exposes them
alongside its own metrics without extra wiring.
"""

from typing import NamedTuple

import prometheus_client


class BackendLabels(NamedTuple):
    backend: str
    outcome: str


class ToolLabels(NamedTuple):
    tool: str
    outcome: str


backend_calls_counter = prometheus_client.Counter(
    name="llm_helm_backend_calls_total",
    documentation="Backend chat calls by backend class and outcome",
    labelnames=BackendLabels._fields,
)

backend_retries_counter = prometheus_client.Counter(
    name="llm_helm_backend_retries_total",
    documentation="Transient backend failures that were retried",
    labelnames=("backend",),
)

tool_calls_counter = prometheus_client.Counter(
    name="llm_helm_tool_calls_total",
    documentation="Tool executions by tool name and outcome",
    labelnames=ToolLabels._fields,
)

repair_attempts_counter = prometheus_client.Counter(
    name="llm_helm_repair_attempts_total",
    documentation="Structured output repair re-queries by failure reason",
    labelnames=("reason",),
)


def record_backend_call(backend: str, error: bool = False) -> None:
    """Count one backend call.

    Args:
        backend: Backend class name
        error: Whether the call raised
    """
    labels = BackendLabels(backend, "error" if error else "success")
    backend_calls_counter.labels(*labels).inc()


def record_backend_retry(backend: str) -> None:
    backend_retries_counter.labels(backend).inc()


def record_tool_call(tool: str, error: bool = False) -> None:
    """Count one tool execution.

    Args:
        tool: Tool name as requested by the model
        error: Whether the tool failed or was not found
    """
    labels = ToolLabels(tool, "error" if error else "success")
    tool_calls_counter.labels(*labels).inc()


def record_repair_attempt(reason: str) -> None:
    repair_attempts_counter.labels(reason).inc()

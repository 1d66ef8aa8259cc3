"""Unit tests for orchestration metrics.

This module tests the label NamedTuples and the counter helpers.
"""

import prometheus_client
import pytest

from llm_helm.backends import FakeBackend
from llm_helm.chat import ChatBuilder
from llm_helm.exceptions import BackendError
from llm_helm.messages import Response, ToolCall
from llm_helm.observability.metrics import (
    BackendLabels,
    ToolLabels,
    record_backend_call,
    record_backend_retry,
    record_repair_attempt,
    record_tool_call,
)


def sample(name: str, **labels) -> float:
    return prometheus_client.REGISTRY.get_sample_value(name, labels) or 0.0


class TestLabels:
    """Tests for metric label NamedTuples."""

    def test_backend_labels_fields(self):
        """Backend labels are backend and outcome."""
        assert BackendLabels._fields == ("backend", "outcome")

    def test_tool_labels_are_immutable(self):
        """Labels are immutable."""
        labels = ToolLabels(tool="search", outcome="success")
        with pytest.raises(AttributeError):
            labels.tool = "other"  # type: ignore


class TestRecordHelpers:
    """Tests for the record_* helpers."""

    def test_record_backend_call_outcomes(self):
        """Success and error outcomes are counted separately."""
        name = "llm_helm_backend_calls_total"
        before_ok = sample(name, backend="MetricsBackend", outcome="success")
        before_err = sample(name, backend="MetricsBackend", outcome="error")

        record_backend_call("MetricsBackend")
        record_backend_call("MetricsBackend", error=True)
        record_backend_call("MetricsBackend", error=True)

        assert sample(name, backend="MetricsBackend", outcome="success") == before_ok + 1
        assert sample(name, backend="MetricsBackend", outcome="error") == before_err + 2

    def test_record_backend_retry(self):
        """Retries are counted per backend."""
        name = "llm_helm_backend_retries_total"
        before = sample(name, backend="MetricsBackend")
        record_backend_retry("MetricsBackend")
        assert sample(name, backend="MetricsBackend") == before + 1

    def test_record_tool_call(self):
        """Tool executions are counted per tool and outcome."""
        name = "llm_helm_tool_calls_total"
        before = sample(name, tool="metrics_tool", outcome="error")
        record_tool_call("metrics_tool", error=True)
        assert sample(name, tool="metrics_tool", outcome="error") == before + 1

    def test_record_repair_attempt(self):
        """Repairs are counted per reason."""
        name = "llm_helm_repair_attempts_total"
        before = sample(name, reason="metrics_reason")
        record_repair_attempt("metrics_reason")
        assert sample(name, reason="metrics_reason") == before + 1


class TestOrchestrationMetrics:
    """Tests that orchestration flows update the counters."""

    def test_tool_loop_counts_tool_calls(self, make_tool):
        """Each executed tool is counted as a success."""
        name = "llm_helm_tool_calls_total"
        before = sample(name, tool="counted_tool", outcome="success")
        backend = FakeBackend([
            Response(content="", tool_calls=(ToolCall(id="c1", name="counted_tool"),)),
            Response(content="done"),
        ])

        ChatBuilder(backend, model="m").tools([make_tool("counted_tool")]).send()

        assert sample(name, tool="counted_tool", outcome="success") == before + 1

    def test_direct_dispatch_counts_backend_calls(self):
        """Calls made without retries or fallbacks are counted too."""

        class DirectBackend(FakeBackend):
            pass

        name = "llm_helm_backend_calls_total"
        before_ok = sample(name, backend="DirectBackend", outcome="success")
        before_err = sample(name, backend="DirectBackend", outcome="error")

        ChatBuilder(DirectBackend([Response(content="hi")]), model="m").user("x").send()
        with pytest.raises(BackendError):
            ChatBuilder(DirectBackend([BackendError("down", 401)]), model="m").send()

        assert sample(name, backend="DirectBackend", outcome="success") == before_ok + 1
        assert sample(name, backend="DirectBackend", outcome="error") == before_err + 1

    def test_retries_count_backend_errors(self, no_sleep):
        """Failed attempts and retries are counted for the backend class."""
        backend = FakeBackend([BackendError("down", status_code=503), Response(content="ok")])
        before_err = sample("llm_helm_backend_calls_total", backend="FakeBackend", outcome="error")
        before_retry = sample("llm_helm_backend_retries_total", backend="FakeBackend")

        ChatBuilder(backend, model="m").retries(1).send()

        after_err = sample("llm_helm_backend_calls_total", backend="FakeBackend", outcome="error")
        assert after_err == before_err + 1
        assert sample("llm_helm_backend_retries_total", backend="FakeBackend") == before_retry + 1

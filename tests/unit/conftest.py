"""Shared fixtures for llm-helm unit tests."""

from unittest.mock import Mock

import pytest

from llm_helm.messages import ChatRequest, Message
from llm_helm.retry import RetryHandler
from llm_helm.tools import FunctionTool


@pytest.fixture
def no_sleep(monkeypatch):
    """Skip real backoff waiting in every RetryHandler; returns the recorded delays."""
    delays: list[float] = []
    monkeypatch.setattr(RetryHandler, "sleep", lambda self, seconds: delays.append(seconds))
    return delays


@pytest.fixture
def sample_request():
    """A minimal valid chat request."""
    return ChatRequest(messages=(Message.user("Hello"),), model="gpt-4o")


@pytest.fixture
def score_schema():
    """Object schema with a bounded integer score and a feedback string."""
    return {
        "type": "object",
        "required": ["score", "feedback"],
        "properties": {
            "score": {"type": "integer", "minimum": 1, "maximum": 10},
            "feedback": {"type": "string"},
        },
    }


@pytest.fixture
def make_tool():
    """Factory for FunctionTools whose handler is a Mock."""

    def factory(name: str, result=None, side_effect=None) -> FunctionTool:
        handler = Mock(return_value=result if result is not None else {}, side_effect=side_effect)
        return FunctionTool(name=name, description=f"A {name} tool", handler=handler)

    return factory

"""Retry and failover for backend calls."""

from llm_helm.retry.handler import RetryHandler, call_backend

__all__ = ["RetryHandler", "call_backend"]

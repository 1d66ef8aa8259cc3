"""Structured output schema validation."""

from llm_helm.schema.validator import SchemaValidator, validate

__all__ = ["SchemaValidator", "validate"]

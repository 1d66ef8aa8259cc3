"""Decode-and-validate step of the structured output loop.

Decode failures and schema violations are expected, recoverable outcomes, so
they are returned as a tagged result for the repair loop to inspect instead
of being raised.
"""

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from llm_helm.schema import validate


class OutcomeKind(StrEnum):
    VALID = "valid"
    INVALID_JSON = "invalid_json"
    SCHEMA_VIOLATION = "schema_violation"


@dataclass(frozen=True)
class StructuredOutcome:
    """Result of decoding and validating model output.

    Attributes:
        kind: Which branch the check ended in
        value: Decoded value (VALID and SCHEMA_VIOLATION only)
        decode_error: JSON decoder message (INVALID_JSON only)
        violations: Schema violations (SCHEMA_VIOLATION only)
    """

    kind: OutcomeKind
    value: Any = None
    decode_error: str | None = None
    violations: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.VALID

    @property
    def errors(self) -> list[str]:
        """Human-readable problems, suitable for SchemaValidationError."""
        if self.kind is OutcomeKind.INVALID_JSON:
            return [f"Invalid JSON: {self.decode_error}"]
        return list(self.violations)

    def failure_message(self) -> str:
        if self.kind is OutcomeKind.INVALID_JSON:
            return f"Structured output is not valid JSON: {self.decode_error}"
        return "Structured output failed schema validation: " + " ".join(self.violations)

    def repair_prompt(self) -> str:
        """Feedback sent back to the model asking for corrected output."""
        if self.kind is OutcomeKind.INVALID_JSON:
            return (
                f"Your previous response was not valid JSON ({self.decode_error}). "
                "Respond again with only valid JSON that matches the requested schema."
            )
        lines = "\n".join(f"- {violation}" for violation in self.violations)
        return (
            "Your previous response had validation errors:\n"
            f"{lines}\n"
            "Respond again with only valid JSON that fixes these errors."
        )


def check_structured_output(content: str, schema: Mapping[str, Any]) -> StructuredOutcome:
    """Decode model output as JSON and validate it against a schema."""
    try:
        value = json.loads(content)
    except json.JSONDecodeError as e:
        return StructuredOutcome(kind=OutcomeKind.INVALID_JSON, decode_error=str(e))

    violations = validate(value, schema)
    if violations:
        return StructuredOutcome(
            kind=OutcomeKind.SCHEMA_VIOLATION, value=value, violations=violations
        )
    return StructuredOutcome(kind=OutcomeKind.VALID, value=value)

"""Minimal schema validator for structured output.

Validates a decoded JSON value against a schema and returns human-readable
violations. Supports the keyword subset structured output needs: type, enum,
minLength, maxLength, minimum, maximum, required, properties and items.
Anything else in the schema is ignored, and a keyword set to null counts as
absent.
"""

import json
from collections.abc import Mapping
from typing import Any

_JSON_TYPE_NAMES: dict[type, str] = {
    str: "string",
    bool: "boolean",
    int: "integer",
    float: "number",
    list: "array",
    dict: "object",
    type(None): "null",
}


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _type_name(value: Any) -> str:
    return _JSON_TYPE_NAMES.get(type(value), type(value).__name__)


def _strict_equal(left: Any, right: Any) -> bool:
    """Equality that never coerces between JSON types (1 != 1.0 != True)."""
    if type(left) is not type(right):
        return False
    if isinstance(left, dict):
        return left.keys() == right.keys() and all(_strict_equal(left[k], right[k]) for k in left)
    if isinstance(left, list):
        return len(left) == len(right) and all(_strict_equal(a, b) for a, b in zip(left, right))
    return left == right


class SchemaValidator:
    """Recursive validator over the supported keyword subset."""

    @classmethod
    def validate(cls, value: Any, schema: Mapping[str, Any], path: str = "$") -> list[str]:
        """Validate a value against a schema node.

        A type mismatch short-circuits every other check for the node;
        the remaining keyword checks accumulate.

        Args:
            value: Decoded JSON value
            schema: Schema node
            path: Schema-relative path used in violation messages

        Returns:
            Violations, empty when the value is valid
        """
        if schema.get("type") is not None:
            type_errors = cls._validate_type(value, schema["type"], path)
            if type_errors:
                return type_errors

        errors: list[str] = []

        options = schema.get("enum")
        if options is not None and not any(_strict_equal(value, option) for option in options):
            allowed = ", ".join(json.dumps(option) for option in options)
            errors.append(f"{path}: value must be one of [{allowed}].")

        if isinstance(value, str):
            errors.extend(cls._validate_string(value, schema, path))

        if _is_number(value):
            errors.extend(cls._validate_number(value, schema, path))

        if isinstance(value, dict) and cls._is_object(value, schema):
            errors.extend(cls._validate_object(value, schema, path))

        if isinstance(value, list):
            errors.extend(cls._validate_array(value, schema, path))

        return errors

    @staticmethod
    def _validate_type(value: Any, expected: Any, path: str) -> list[str]:
        match expected:
            case "string":
                valid = isinstance(value, str)
            case "integer":
                valid = isinstance(value, int) and not isinstance(value, bool)
            case "number":
                valid = _is_number(value)
            case "boolean":
                valid = isinstance(value, bool)
            case "array":
                valid = isinstance(value, list)
            case "object":
                valid = isinstance(value, dict)
            case "null":
                valid = value is None
            case _:
                # Unknown types are accepted so newer schemas keep working.
                valid = True

        if not valid:
            return [f"{path}: expected type '{expected}', got '{_type_name(value)}'."]
        return []

    @staticmethod
    def _validate_string(value: str, schema: Mapping[str, Any], path: str) -> list[str]:
        errors = []
        length = len(value)

        min_length = schema.get("minLength")
        max_length = schema.get("maxLength")

        if min_length is not None and length < min_length:
            errors.append(f"{path}: string length {length} is less than minimum {min_length}.")
        if max_length is not None and length > max_length:
            errors.append(f"{path}: string length {length} exceeds maximum {max_length}.")

        return errors

    @staticmethod
    def _validate_number(value: int | float, schema: Mapping[str, Any], path: str) -> list[str]:
        errors = []

        minimum = schema.get("minimum")
        maximum = schema.get("maximum")

        if minimum is not None and value < minimum:
            errors.append(f"{path}: value {value} is less than minimum {minimum}.")
        if maximum is not None and value > maximum:
            errors.append(f"{path}: value {value} exceeds maximum {maximum}.")

        return errors

    @classmethod
    def _validate_object(
        cls, value: dict[str, Any], schema: Mapping[str, Any], path: str
    ) -> list[str]:
        errors = []

        required = schema.get("required")
        if isinstance(required, list):
            for name in required:
                if name not in value:
                    errors.append(f"{path}: missing required property '{name}'.")

        properties = schema.get("properties")
        if isinstance(properties, Mapping):
            for name, child_schema in properties.items():
                if name in value and isinstance(child_schema, Mapping):
                    errors.extend(cls.validate(value[name], child_schema, f"{path}.{name}"))

        return errors

    @classmethod
    def _validate_array(cls, value: list[Any], schema: Mapping[str, Any], path: str) -> list[str]:
        items = schema.get("items")
        if not isinstance(items, Mapping):
            return []

        errors = []
        for index, item in enumerate(value):
            errors.extend(cls.validate(item, items, f"{path}[{index}]"))
        return errors

    @staticmethod
    def _is_object(value: dict[str, Any], schema: Mapping[str, Any]) -> bool:
        if schema.get("type") == "object":
            return True
        if schema.get("properties") is not None or schema.get("required") is not None:
            return True
        return not value


def validate(value: Any, schema: Mapping[str, Any], path: str = "$") -> list[str]:
    """Validate a decoded value against a schema; see SchemaValidator.validate."""
    return SchemaValidator.validate(value, schema, path)

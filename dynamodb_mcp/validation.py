"""validation.py — Check call arguments against a ToolSpec before any AWS call.

Validation is a gate: the arguments come back unchanged. Fields the schema
does not declare are passed through without checks.
"""
from __future__ import annotations

from typing import Any, Dict, Mapping

from dynamodb_mcp.errors import (
    InvalidEnumError,
    MissingFieldError,
    TypeMismatchError,
)
from dynamodb_mcp.schemas import FieldKind, FieldSpec, ToolSpec

__all__ = ["kind_of", "validate"]


def kind_of(value: Any) -> str:
    """Structural kind name of a decoded JSON value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _matches(field: FieldSpec, value: Any) -> bool:
    actual = kind_of(value)
    if field.kind is FieldKind.STRING_ARRAY:
        return actual == "array" and all(isinstance(v, str) for v in value)
    return actual == field.kind.value


def validate(spec: ToolSpec, args: Any) -> Dict[str, Any]:
    """Return ``args`` if it satisfies ``spec``, else raise a ValidationError.

    A field explicitly set to ``null`` counts as absent.
    """
    if args is None:
        args = {}
    if not isinstance(args, Mapping):
        raise TypeMismatchError("arguments", "object", kind_of(args))

    for field in spec.input_schema:
        value = args.get(field.name)
        if value is None:
            if field.required:
                raise MissingFieldError(field.name)
            continue
        if not _matches(field, value):
            actual = kind_of(value)
            if field.kind is FieldKind.STRING_ARRAY and actual == "array":
                actual = "array with non-string elements"
            raise TypeMismatchError(field.name, field.kind.value, actual)
        if field.allowed_values is not None and value not in field.allowed_values:
            raise InvalidEnumError(field.name, value, field.allowed_values)
    return args

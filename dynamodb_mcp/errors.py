"""errors.py — Error types for the tool gateway.

Every error carries a ``kind`` so callers and tests can branch on the
category instead of matching message text.
"""
from __future__ import annotations

from typing import Any, Optional, Sequence

__all__ = [
    "ExternalServiceError",
    "GatewayError",
    "InvalidEnumError",
    "MissingFieldError",
    "TransportFatalError",
    "TypeMismatchError",
    "UnknownToolError",
    "ValidationError",
]


class GatewayError(Exception):
    """Base exception for gateway errors.

    Attributes:
        message: Human-readable description.
        kind: Stable discriminator, e.g. ``missing_field``.
    """

    kind = "gateway_error"

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if kind:
            self.kind = kind

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message}


class UnknownToolError(GatewayError):
    """Raised when a call names a tool that is not in the registry."""

    kind = "unknown_tool"

    def __init__(self, tool_name: str):
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


class ValidationError(GatewayError):
    """Base for argument validation failures.

    Attributes:
        field: Name of the offending argument.
    """

    kind = "validation_error"

    def __init__(self, message: str, field: str):
        super().__init__(message)
        self.field = field


class MissingFieldError(ValidationError):
    kind = "missing_field"

    def __init__(self, field: str):
        super().__init__(f"Missing required field: {field}", field)


class TypeMismatchError(ValidationError):
    kind = "type_mismatch"

    def __init__(self, field: str, expected: str, actual: str):
        super().__init__(
            f"Invalid type for field {field}: expected {expected}, got {actual}",
            field,
        )
        self.expected = expected
        self.actual = actual


class InvalidEnumError(ValidationError):
    kind = "invalid_enum"

    def __init__(self, field: str, value: Any, allowed: Sequence[str]):
        super().__init__(
            f"Invalid value for field {field}: {value!r} is not one of {', '.join(allowed)}",
            field,
        )
        self.value = value
        self.allowed = tuple(allowed)


class ExternalServiceError(GatewayError):
    """A DynamoDB call failed.

    Attributes:
        code: The service error code (``ResourceNotFoundException`` ...) when
            the failure came back from DynamoDB, else empty.
    """

    kind = "external_service"

    def __init__(self, message: str, code: str = ""):
        super().__init__(message)
        self.code = code

    def to_dict(self) -> dict:
        payload = super().to_dict()
        if self.code:
            payload["code"] = self.code
        return payload


class TransportFatalError(GatewayError):
    """The stdio transport could not be established."""

    kind = "transport_fatal"

"""envelope.py — The success/message/payload wrapper returned by every tool."""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from dynamodb_mcp.errors import GatewayError

__all__ = ["ResultEnvelope"]


@dataclass(frozen=True)
class ResultEnvelope:
    success: bool
    message: str
    payload: Dict[str, Any] = field(default_factory=dict)
    error: Optional[GatewayError] = None

    @classmethod
    def ok(cls, message: str, **payload: Any) -> "ResultEnvelope":
        return cls(success=True, message=message, payload=payload)

    @classmethod
    def fail(cls, error: GatewayError) -> "ResultEnvelope":
        return cls(success=False, message=error.message, error=error)

    @property
    def error_kind(self) -> str:
        return self.error.kind if self.error is not None else ""

    def to_dict(self) -> Dict[str, Any]:
        """Flatten into the JSON body sent back to the host.

        Payload keys sit beside ``success`` and ``message``; a failure also
        carries the structured ``error`` object.
        """
        body: Dict[str, Any] = {"success": self.success, "message": self.message}
        body.update(self.payload)
        if self.error is not None:
            body["error"] = self.error.to_dict()
        return body

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, default=str)

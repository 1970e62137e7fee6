"""dispatcher.py — Resolve a tool by name, validate its arguments, run its adapter."""
from __future__ import annotations

import hashlib
import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional

from dynamodb_mcp.adapters import ADAPTERS, Adapter
from dynamodb_mcp.envelope import ResultEnvelope
from dynamodb_mcp.errors import UnknownToolError, ValidationError
from dynamodb_mcp.schemas import ToolSpec, get_tool_spec, list_tools
from dynamodb_mcp.validation import validate

__all__ = ["Dispatcher"]

logger = logging.getLogger(__name__)


def _now_z() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def _input_hash(arguments: Any) -> str:
    payload = json.dumps(arguments or {}, sort_keys=True, default=str).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


class Dispatcher:
    """Routes tool calls to adapters.

    The DynamoDB client is supplied by the caller and shared by every call;
    the dispatcher itself never talks to DynamoDB. Without an explicit
    ``registry`` tools are resolved through the module registry.
    """

    def __init__(
        self,
        client: Any,
        registry: Optional[Iterable[ToolSpec]] = None,
        adapters: Optional[Mapping[str, Adapter]] = None,
    ):
        self.client = client
        if registry is None:
            names = [spec.name for spec in list_tools()]
            self._lookup: Callable[[str], Optional[ToolSpec]] = get_tool_spec
        else:
            specs = {spec.name: spec for spec in registry}
            names = list(specs)
            self._lookup = specs.get
        self.adapters: Mapping[str, Adapter] = ADAPTERS if adapters is None else adapters
        missing = sorted(set(names) - set(self.adapters))
        if missing:
            raise ValueError(f"No adapter registered for tools: {', '.join(missing)}")

    async def dispatch(self, tool_name: str, raw_args: Any) -> ResultEnvelope:
        started = time.perf_counter()
        try:
            envelope = await self._dispatch(tool_name, raw_args)
        except Exception:
            self._audit(tool_name, raw_args, "error", "tool_exception", started)
            raise
        self._audit(
            tool_name,
            raw_args,
            "success" if envelope.success else "error",
            envelope.error_kind,
            started,
        )
        return envelope

    async def _dispatch(self, tool_name: str, raw_args: Any) -> ResultEnvelope:
        spec = self._lookup(tool_name)
        if spec is None:
            return ResultEnvelope.fail(UnknownToolError(tool_name))
        try:
            args = validate(spec, raw_args)
        except ValidationError as exc:
            logger.info("rejected %s arguments: %s", tool_name, exc.message)
            return ResultEnvelope.fail(exc)
        adapter = self.adapters[tool_name]
        return await adapter(self.client, dict(args))

    def _audit(self, tool_name: str, raw_args: Any, status: str, error_code: str, started: float) -> None:
        payload = {
            "invocation_id": f"mcpi-{uuid.uuid4().hex[:20]}",
            "tool_name": tool_name,
            "input_hash": _input_hash(raw_args),
            "result_status": status,
            "latency_ms": int(max(0, (time.perf_counter() - started) * 1000)),
            "error_code": error_code,
            "timestamp": _now_z(),
        }
        logger.info("[AUDIT] %s", json.dumps(payload, sort_keys=True))

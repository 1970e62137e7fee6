#!/usr/bin/env python3
"""DynamoDB MCP Server — table, index and item operations as MCP tools.

Exposes a fixed catalog of DynamoDB operations so an agent host can manage
tables and items through one stdio MCP endpoint:

  Agent host -> MCP client -> THIS SERVER -> DynamoDB (boto3)

Tool catalog: create_table, update_capacity, put_item, get_item, query_table,
scan_table, describe_table, list_tables, create_gsi, update_gsi, create_lsi,
update_item. There are no delete operations.

Transport: stdio

Environment:
  AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY / AWS_REGION   (required)
  AWS_SESSION_TOKEN                                        (optional)
  DYNAMODB_ENDPOINT_URL                                    (optional, e.g. DynamoDB Local)
  DYNAMODB_MCP_LOG_LEVEL                                   (optional, default INFO)
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Any, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from dynamodb_mcp.aws_clients import build_ddb_client
from dynamodb_mcp.config import (
    SERVER_NAME,
    SERVER_VERSION,
    Settings,
    configure_logging,
    load_settings,
)
from dynamodb_mcp.dispatcher import Dispatcher
from dynamodb_mcp.envelope import ResultEnvelope
from dynamodb_mcp.errors import TransportFatalError, UnknownToolError
from dynamodb_mcp.schemas import list_tools as registry_tools

__all__ = [
    "ToolCallFailed",
    "create_server",
    "handle_call_tool",
    "main",
    "render_call_result",
    "serve",
    "tool_definitions",
]

logger = logging.getLogger(__name__)


class ToolCallFailed(Exception):
    """Raised from the call_tool handler to mark a reply as an error.

    The MCP server turns the exception into a reply with ``isError`` set and
    the exception text as its single text block.
    """


def tool_definitions() -> list[Tool]:
    return [
        Tool(name=spec.name, description=spec.description, inputSchema=spec.to_input_schema())
        for spec in registry_tools()
    ]


def render_call_result(envelope: ResultEnvelope) -> list[TextContent]:
    """Format an envelope as the single text block of a tool reply."""
    return [TextContent(type="text", text=envelope.to_json())]


async def handle_call_tool(dispatcher: Dispatcher, name: str, arguments: Any) -> list[TextContent]:
    try:
        envelope = await dispatcher.dispatch(name, arguments)
    except Exception as exc:
        logger.exception("tool call failed: %s", name)
        raise ToolCallFailed(f"Error occurred: {exc}") from exc
    if envelope.error_kind == UnknownToolError.kind:
        raise ToolCallFailed(envelope.to_json())
    return render_call_result(envelope)


def create_server(dispatcher: Dispatcher) -> Server:
    app = Server(SERVER_NAME, version=SERVER_VERSION)

    @app.list_tools()
    async def list_tools() -> list[Tool]:
        return tool_definitions()

    # Arguments are checked by the dispatcher so that validation failures come
    # back as ordinary envelopes rather than SDK errors.
    @app.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict) -> list[TextContent]:
        return await handle_call_tool(dispatcher, name, arguments)

    return app


# ===================================================================
# ENTRY POINT
# ===================================================================


async def serve(settings: Settings, client: Optional[Any] = None) -> None:
    """Run the server on stdio until the host closes the stream."""
    try:
        ddb = client if client is not None else build_ddb_client(settings)
        app = create_server(Dispatcher(ddb))
        async with stdio_server() as (read_stream, write_stream):
            logger.info("DynamoDB MCP server v%s running on stdio", SERVER_VERSION)
            await app.run(
                read_stream,
                write_stream,
                app.create_initialization_options(),
                raise_exceptions=False,
            )
    except Exception as exc:
        raise TransportFatalError(f"Fatal error running server: {exc}") from exc


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    logger.info("[START] DynamoDB MCP Server v%s", SERVER_VERSION)
    try:
        asyncio.run(serve(settings))
    except TransportFatalError as exc:
        logger.error("%s", exc.message, exc_info=exc.__cause__)
        sys.exit(1)


if __name__ == "__main__":
    main()

"""dynamodb_mcp — DynamoDB table, index and item operations as MCP tools.

Provides:
    - A fixed registry of tool schemas (no delete operations)
    - Argument validation ahead of any AWS call
    - One boto3 adapter per tool, returning a uniform result envelope
    - A stdio MCP server wiring the above together
"""

__version__ = "0.1.0"

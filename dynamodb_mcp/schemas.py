"""schemas.py — The tool registry.

Each tool is a ``ToolSpec`` with an ordered tuple of ``FieldSpec`` entries.
The registry is built at import time and never changes; adding a tool means
adding an entry here and an adapter in ``adapters.py``.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

__all__ = [
    "FieldKind",
    "FieldSpec",
    "KEY_TYPES",
    "PROJECTION_TYPES",
    "RETURN_VALUES",
    "TOOL_SPECS",
    "ToolSpec",
    "get_tool_spec",
    "list_tools",
]


class FieldKind(str, enum.Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    STRING_ARRAY = "array-of-string"


KEY_TYPES = ("S", "N", "B")
PROJECTION_TYPES = ("ALL", "KEYS_ONLY", "INCLUDE")
RETURN_VALUES = ("NONE", "ALL_OLD", "UPDATED_OLD", "ALL_NEW", "UPDATED_NEW")


@dataclass(frozen=True)
class FieldSpec:
    name: str
    kind: FieldKind
    description: str = ""
    required: bool = False
    allowed_values: Optional[Tuple[str, ...]] = None

    def to_json_schema(self) -> Dict[str, Any]:
        if self.kind is FieldKind.STRING_ARRAY:
            schema: Dict[str, Any] = {"type": "array", "items": {"type": "string"}}
        else:
            schema = {"type": self.kind.value}
        if self.allowed_values is not None:
            schema["enum"] = list(self.allowed_values)
        if self.description:
            schema["description"] = self.description
        return schema


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_schema: Tuple[FieldSpec, ...] = ()

    @property
    def required_fields(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.input_schema if f.required)

    def to_input_schema(self) -> Dict[str, Any]:
        """Render as the JSON schema advertised in the tool listing."""
        schema: Dict[str, Any] = {
            "type": "object",
            "properties": {f.name: f.to_json_schema() for f in self.input_schema},
        }
        if self.required_fields:
            schema["required"] = list(self.required_fields)
        return schema


def _str(name: str, description: str, required: bool = False, allowed=None) -> FieldSpec:
    return FieldSpec(
        name,
        FieldKind.STRING,
        description,
        required,
        tuple(allowed) if allowed is not None else None,
    )


def _num(name: str, description: str, required: bool = False) -> FieldSpec:
    return FieldSpec(name, FieldKind.NUMBER, description, required)


def _obj(name: str, description: str, required: bool = False) -> FieldSpec:
    return FieldSpec(name, FieldKind.OBJECT, description, required)


def _table(description: str = "Name of the table") -> FieldSpec:
    return _str("tableName", description, required=True)


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------

CREATE_TABLE = ToolSpec(
    name="create_table",
    description="Creates a new DynamoDB table with specified configuration",
    input_schema=(
        _table("Name of the table to create"),
        _str("partitionKey", "Name of the partition key", required=True),
        _str(
            "partitionKeyType",
            "Type of partition key (S=String, N=Number, B=Binary)",
            required=True,
            allowed=KEY_TYPES,
        ),
        _str("sortKey", "Name of the sort key (optional)"),
        _str("sortKeyType", "Type of sort key (optional)", allowed=KEY_TYPES),
        _num("readCapacity", "Provisioned read capacity units", required=True),
        _num("writeCapacity", "Provisioned write capacity units", required=True),
    ),
)

UPDATE_CAPACITY = ToolSpec(
    name="update_capacity",
    description="Updates the provisioned capacity of a table",
    input_schema=(
        _table(),
        _num("readCapacity", "New read capacity units", required=True),
        _num("writeCapacity", "New write capacity units", required=True),
    ),
)

PUT_ITEM = ToolSpec(
    name="put_item",
    description="Inserts or replaces an item in a table",
    input_schema=(
        _table(),
        _obj("item", "Item to put into the table", required=True),
    ),
)

GET_ITEM = ToolSpec(
    name="get_item",
    description="Retrieves an item from a table by its primary key",
    input_schema=(
        _table(),
        _obj("key", "Primary key of the item to retrieve", required=True),
    ),
)

QUERY_TABLE = ToolSpec(
    name="query_table",
    description="Queries a table using key conditions and optional filters",
    input_schema=(
        _table(),
        _str("keyConditionExpression", "Key condition expression", required=True),
        _obj(
            "expressionAttributeValues",
            "Values for the key condition expression",
            required=True,
        ),
        _obj("expressionAttributeNames", "Attribute name mappings"),
        _str("filterExpression", "Filter expression for results"),
        _num("limit", "Maximum number of items to return"),
    ),
)

SCAN_TABLE = ToolSpec(
    name="scan_table",
    description="Scans an entire table with optional filters",
    input_schema=(
        _table(),
        _str("filterExpression", "Filter expression"),
        _obj("expressionAttributeValues", "Values for the filter expression"),
        _obj("expressionAttributeNames", "Attribute name mappings"),
        _num("limit", "Maximum number of items to return"),
    ),
)

DESCRIBE_TABLE = ToolSpec(
    name="describe_table",
    description="Gets detailed information about a DynamoDB table",
    input_schema=(_table("Name of the table to describe"),),
)

LIST_TABLES = ToolSpec(
    name="list_tables",
    description="Lists all DynamoDB tables in the account",
    input_schema=(
        _num("limit", "Maximum number of tables to return (optional)"),
        _str(
            "exclusiveStartTableName",
            "Name of the table to start from for pagination (optional)",
        ),
    ),
)

CREATE_GSI = ToolSpec(
    name="create_gsi",
    description="Creates a global secondary index on a table",
    input_schema=(
        _table(),
        _str("indexName", "Name of the new index", required=True),
        _str("partitionKey", "Partition key for the index", required=True),
        _str("partitionKeyType", "Type of partition key", required=True, allowed=KEY_TYPES),
        _str("sortKey", "Sort key for the index (optional)"),
        _str("sortKeyType", "Type of sort key (optional)", allowed=KEY_TYPES),
        _str("projectionType", "Type of projection", required=True, allowed=PROJECTION_TYPES),
        FieldSpec(
            "nonKeyAttributes",
            FieldKind.STRING_ARRAY,
            "Non-key attributes to project (optional)",
        ),
        _num("readCapacity", "Provisioned read capacity units", required=True),
        _num("writeCapacity", "Provisioned write capacity units", required=True),
    ),
)

UPDATE_GSI = ToolSpec(
    name="update_gsi",
    description="Updates the provisioned capacity of a global secondary index",
    input_schema=(
        _table(),
        _str("indexName", "Name of the index to update", required=True),
        _num("readCapacity", "New read capacity units", required=True),
        _num("writeCapacity", "New write capacity units", required=True),
    ),
)

CREATE_LSI = ToolSpec(
    name="create_lsi",
    description=(
        "Creates a local secondary index on a table (must be done during table "
        "creation, so this creates a new table)"
    ),
    input_schema=(
        _table(),
        _str("indexName", "Name of the new index", required=True),
        _str("partitionKey", "Partition key for the table", required=True),
        _str("partitionKeyType", "Type of partition key", required=True, allowed=KEY_TYPES),
        _str("sortKey", "Sort key for the index", required=True),
        _str("sortKeyType", "Type of sort key", required=True, allowed=KEY_TYPES),
        _str("projectionType", "Type of projection", required=True, allowed=PROJECTION_TYPES),
        FieldSpec(
            "nonKeyAttributes",
            FieldKind.STRING_ARRAY,
            "Non-key attributes to project (optional)",
        ),
        _num("readCapacity", "Provisioned read capacity units (optional, default: 5)"),
        _num("writeCapacity", "Provisioned write capacity units (optional, default: 5)"),
    ),
)

UPDATE_ITEM = ToolSpec(
    name="update_item",
    description="Updates specific attributes of an item in a table",
    input_schema=(
        _table(),
        _obj("key", "Primary key of the item to update", required=True),
        _str("updateExpression", "Update expression (e.g., 'SET #n = :name')", required=True),
        _obj("expressionAttributeNames", "Attribute name mappings", required=True),
        _obj("expressionAttributeValues", "Values for the update expression", required=True),
        _str("conditionExpression", "Condition for update (optional)"),
        _str("returnValues", "What values to return", allowed=RETURN_VALUES),
    ),
)

TOOL_SPECS: Tuple[ToolSpec, ...] = (
    CREATE_TABLE,
    UPDATE_CAPACITY,
    PUT_ITEM,
    GET_ITEM,
    QUERY_TABLE,
    SCAN_TABLE,
    DESCRIBE_TABLE,
    LIST_TABLES,
    CREATE_GSI,
    UPDATE_GSI,
    CREATE_LSI,
    UPDATE_ITEM,
)

_BY_NAME: Dict[str, ToolSpec] = {spec.name: spec for spec in TOOL_SPECS}
if len(_BY_NAME) != len(TOOL_SPECS):
    raise RuntimeError("duplicate tool name in registry")


def list_tools() -> Tuple[ToolSpec, ...]:
    return TOOL_SPECS


def get_tool_spec(name: str) -> Optional[ToolSpec]:
    return _BY_NAME.get(name)

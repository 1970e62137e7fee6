"""adapters.py — One coroutine per tool, each issuing a single DynamoDB call.

Adapters receive arguments that already passed validation. They translate
them into boto3 request parameters, make exactly one call on the shared
client, and build a ResultEnvelope. A failing call is logged and turned into
a failure envelope; nothing is retried or rolled back.
"""
from __future__ import annotations

import decimal
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from botocore.exceptions import BotoCoreError, ClientError

from dynamodb_mcp.config import DEFAULT_LSI_CAPACITY
from dynamodb_mcp.envelope import ResultEnvelope
from dynamodb_mcp.errors import ExternalServiceError
from dynamodb_mcp.serialization import marshall, unmarshall

__all__ = ["ADAPTERS", "Adapter"]

logger = logging.getLogger(__name__)

Adapter = Callable[[Any, Dict[str, Any]], Awaitable[ResultEnvelope]]

# Errors an adapter converts into a failure envelope. TypeError, ValueError and
# DecimalException come from attribute-value serialization of unsupported
# input or numbers outside the DynamoDB range and precision.
_CALL_ERRORS = (ClientError, BotoCoreError, TypeError, ValueError, decimal.DecimalException)


# ---------------------------------------------------------------------------
# Request helpers
# ---------------------------------------------------------------------------


def _units(value: Any) -> Any:
    # JSON numbers may decode as float; boto3 wants int for counts and units.
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _throughput(read: Any, write: Any) -> Dict[str, Any]:
    return {"ReadCapacityUnits": _units(read), "WriteCapacityUnits": _units(write)}


def _key_schema(partition_key: str, sort_key: Optional[str] = None) -> List[Dict[str, str]]:
    schema = [{"AttributeName": partition_key, "KeyType": "HASH"}]
    if sort_key:
        schema.append({"AttributeName": sort_key, "KeyType": "RANGE"})
    return schema


def _attribute_definitions(args: Mapping[str, Any]) -> List[Dict[str, str]]:
    defs = [{"AttributeName": args["partitionKey"], "AttributeType": args["partitionKeyType"]}]
    if args.get("sortKey"):
        defs.append({"AttributeName": args["sortKey"], "AttributeType": args.get("sortKeyType")})
    return defs


def _projection(args: Mapping[str, Any]) -> Dict[str, Any]:
    projection: Dict[str, Any] = {"ProjectionType": args["projectionType"]}
    if args["projectionType"] == "INCLUDE":
        projection["NonKeyAttributes"] = list(args.get("nonKeyAttributes") or [])
    return projection


def _put_if(kwargs: Dict[str, Any], name: str, value: Any) -> None:
    # boto3 rejects explicit None and DynamoDB rejects empty expression maps.
    if value is None or value == {}:
        return
    kwargs[name] = value


def _error_code(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return str(exc.response.get("Error", {}).get("Code", ""))
    return ""


def _failure(action: str, exc: Exception) -> ResultEnvelope:
    logger.error("Error %s: %s", action, exc)
    return ResultEnvelope.fail(
        ExternalServiceError(f"Failed to {action}: {exc}", code=_error_code(exc))
    )


def _items_payload(resp: Mapping[str, Any]) -> Dict[str, Any]:
    items = [unmarshall(i) for i in resp.get("Items", [])]
    count = len(items)
    return {
        "items": items,
        "count": count,
        "scannedCount": resp.get("ScannedCount", count),
    }


# ---------------------------------------------------------------------------
# Table lifecycle
# ---------------------------------------------------------------------------


async def _create_table(ddb: Any, args: Dict[str, Any]) -> ResultEnvelope:
    table = args["tableName"]
    try:
        resp = ddb.create_table(
            TableName=table,
            AttributeDefinitions=_attribute_definitions(args),
            KeySchema=_key_schema(args["partitionKey"], args.get("sortKey")),
            ProvisionedThroughput=_throughput(args["readCapacity"], args["writeCapacity"]),
        )
    except _CALL_ERRORS as exc:
        return _failure("create table", exc)
    return ResultEnvelope.ok(
        f"Table {table} created successfully",
        details=resp.get("TableDescription"),
    )


async def _list_tables(ddb: Any, args: Dict[str, Any]) -> ResultEnvelope:
    kwargs: Dict[str, Any] = {}
    _put_if(kwargs, "Limit", _units(args.get("limit")))
    _put_if(kwargs, "ExclusiveStartTableName", args.get("exclusiveStartTableName"))
    try:
        resp = ddb.list_tables(**kwargs)
    except _CALL_ERRORS as exc:
        return _failure("list tables", exc)
    return ResultEnvelope.ok(
        "Tables listed successfully",
        tables=resp.get("TableNames", []),
        lastEvaluatedTable=resp.get("LastEvaluatedTableName"),
    )


async def _describe_table(ddb: Any, args: Dict[str, Any]) -> ResultEnvelope:
    table = args["tableName"]
    try:
        resp = ddb.describe_table(TableName=table)
    except _CALL_ERRORS as exc:
        return _failure("describe table", exc)
    return ResultEnvelope.ok(f"Table {table} described successfully", table=resp.get("Table"))


async def _update_capacity(ddb: Any, args: Dict[str, Any]) -> ResultEnvelope:
    table = args["tableName"]
    try:
        resp = ddb.update_table(
            TableName=table,
            ProvisionedThroughput=_throughput(args["readCapacity"], args["writeCapacity"]),
        )
    except _CALL_ERRORS as exc:
        return _failure("update capacity", exc)
    return ResultEnvelope.ok(
        f"Capacity updated successfully for table {table}",
        details=resp.get("TableDescription"),
    )


# ---------------------------------------------------------------------------
# Secondary indexes
# ---------------------------------------------------------------------------


async def _create_gsi(ddb: Any, args: Dict[str, Any]) -> ResultEnvelope:
    table, index = args["tableName"], args["indexName"]
    create = {
        "IndexName": index,
        "KeySchema": _key_schema(args["partitionKey"], args.get("sortKey")),
        "Projection": _projection(args),
        "ProvisionedThroughput": _throughput(args["readCapacity"], args["writeCapacity"]),
    }
    try:
        resp = ddb.update_table(
            TableName=table,
            AttributeDefinitions=_attribute_definitions(args),
            GlobalSecondaryIndexUpdates=[{"Create": create}],
        )
    except _CALL_ERRORS as exc:
        return _failure("create GSI", exc)
    return ResultEnvelope.ok(
        f"GSI {index} creation initiated on table {table}",
        details=resp.get("TableDescription"),
    )


async def _update_gsi(ddb: Any, args: Dict[str, Any]) -> ResultEnvelope:
    table, index = args["tableName"], args["indexName"]
    update = {
        "IndexName": index,
        "ProvisionedThroughput": _throughput(args["readCapacity"], args["writeCapacity"]),
    }
    try:
        resp = ddb.update_table(TableName=table, GlobalSecondaryIndexUpdates=[{"Update": update}])
    except _CALL_ERRORS as exc:
        return _failure("update GSI", exc)
    return ResultEnvelope.ok(
        f"GSI {index} capacity updated on table {table}",
        details=resp.get("TableDescription"),
    )


async def _create_lsi(ddb: Any, args: Dict[str, Any]) -> ResultEnvelope:
    # An LSI cannot be added to an existing table: this always creates the
    # table, keyed on partitionKey/sortKey, with the index attached.
    table, index = args["tableName"], args["indexName"]
    read = args.get("readCapacity")
    write = args.get("writeCapacity")
    lsi = {
        "IndexName": index,
        "KeySchema": _key_schema(args["partitionKey"], args["sortKey"]),
        "Projection": _projection(args),
    }
    try:
        resp = ddb.create_table(
            TableName=table,
            AttributeDefinitions=_attribute_definitions(args),
            KeySchema=_key_schema(args["partitionKey"], args["sortKey"]),
            LocalSecondaryIndexes=[lsi],
            ProvisionedThroughput=_throughput(
                read if read else DEFAULT_LSI_CAPACITY,
                write if write else DEFAULT_LSI_CAPACITY,
            ),
        )
    except _CALL_ERRORS as exc:
        return _failure("create LSI", exc)
    return ResultEnvelope.ok(
        f"LSI {index} created on table {table}",
        details=resp.get("TableDescription"),
    )


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------


async def _put_item(ddb: Any, args: Dict[str, Any]) -> ResultEnvelope:
    table = args["tableName"]
    try:
        ddb.put_item(TableName=table, Item=marshall(args["item"]))
    except _CALL_ERRORS as exc:
        return _failure("put item", exc)
    return ResultEnvelope.ok(f"Item added successfully to table {table}", item=args["item"])


async def _get_item(ddb: Any, args: Dict[str, Any]) -> ResultEnvelope:
    table = args["tableName"]
    try:
        resp = ddb.get_item(TableName=table, Key=marshall(args["key"]))
    except _CALL_ERRORS as exc:
        return _failure("get item", exc)
    return ResultEnvelope.ok(
        f"Item retrieved successfully from table {table}",
        item=unmarshall(resp.get("Item")),
    )


async def _update_item(ddb: Any, args: Dict[str, Any]) -> ResultEnvelope:
    table = args["tableName"]
    try:
        kwargs: Dict[str, Any] = {
            "TableName": table,
            "Key": marshall(args["key"]),
            "UpdateExpression": args["updateExpression"],
            "ReturnValues": args.get("returnValues") or "NONE",
        }
        _put_if(kwargs, "ExpressionAttributeNames", args.get("expressionAttributeNames"))
        _put_if(kwargs, "ExpressionAttributeValues", marshall(args.get("expressionAttributeValues")))
        _put_if(kwargs, "ConditionExpression", args.get("conditionExpression"))
        resp = ddb.update_item(**kwargs)
    except _CALL_ERRORS as exc:
        return _failure("update item", exc)
    return ResultEnvelope.ok(
        f"Item updated successfully in table {table}",
        attributes=unmarshall(resp.get("Attributes")),
    )


async def _query_table(ddb: Any, args: Dict[str, Any]) -> ResultEnvelope:
    table = args["tableName"]
    try:
        kwargs: Dict[str, Any] = {
            "TableName": table,
            "KeyConditionExpression": args["keyConditionExpression"],
        }
        _put_if(kwargs, "ExpressionAttributeValues", marshall(args.get("expressionAttributeValues")))
        _put_if(kwargs, "ExpressionAttributeNames", args.get("expressionAttributeNames"))
        _put_if(kwargs, "FilterExpression", args.get("filterExpression"))
        _put_if(kwargs, "Limit", _units(args.get("limit")))
        resp = ddb.query(**kwargs)
    except _CALL_ERRORS as exc:
        return _failure("query table", exc)
    return ResultEnvelope.ok(f"Query executed successfully on table {table}", **_items_payload(resp))


async def _scan_table(ddb: Any, args: Dict[str, Any]) -> ResultEnvelope:
    table = args["tableName"]
    try:
        kwargs: Dict[str, Any] = {"TableName": table}
        _put_if(kwargs, "FilterExpression", args.get("filterExpression"))
        _put_if(kwargs, "ExpressionAttributeValues", marshall(args.get("expressionAttributeValues")))
        _put_if(kwargs, "ExpressionAttributeNames", args.get("expressionAttributeNames"))
        _put_if(kwargs, "Limit", _units(args.get("limit")))
        resp = ddb.scan(**kwargs)
    except _CALL_ERRORS as exc:
        return _failure("scan table", exc)
    return ResultEnvelope.ok(f"Scan executed successfully on table {table}", **_items_payload(resp))


# -------------------------------------------------------------------
# Handler dispatch map
# -------------------------------------------------------------------

ADAPTERS: Dict[str, Adapter] = {
    "create_table": _create_table,
    "update_capacity": _update_capacity,
    "put_item": _put_item,
    "get_item": _get_item,
    "query_table": _query_table,
    "scan_table": _scan_table,
    "describe_table": _describe_table,
    "list_tables": _list_tables,
    "create_gsi": _create_gsi,
    "update_gsi": _update_gsi,
    "create_lsi": _create_lsi,
    "update_item": _update_item,
}

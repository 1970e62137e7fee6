"""Tests for the DynamoDB tool adapters.

Adapters are driven against an in-memory fake client that records the
keyword arguments boto3 would have received.
"""

import asyncio
import datetime as dt

import pytest
from botocore.exceptions import ClientError

from dynamodb_mcp import adapters
from dynamodb_mcp.adapters import ADAPTERS
from dynamodb_mcp.schemas import TOOL_SPECS


def _run(coro):
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _call(ddb, tool: str, args: dict) -> dict:
    envelope = _run(ADAPTERS[tool](ddb, args))
    return envelope.to_dict()


def _client_error(code: str, message: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class _FakeDdb:
    """Just enough of the DynamoDB client surface for the adapters."""

    def __init__(self):
        self.calls = []
        self.tables = {}
        self.items = {}
        self.raise_on = {}
        self.scanned_extra = 0

    def _record(self, op, kwargs):
        self.calls.append((op, kwargs))
        if op in self.raise_on:
            raise self.raise_on[op]

    def _description(self, name):
        return {
            "TableName": name,
            "TableStatus": "ACTIVE",
            "CreationDateTime": dt.datetime(2026, 1, 1, tzinfo=dt.timezone.utc),
            **self.tables.get(name, {}),
        }

    def create_table(self, **kwargs):
        self._record("create_table", kwargs)
        self.tables[kwargs["TableName"]] = {"KeySchema": kwargs["KeySchema"]}
        self.items.setdefault(kwargs["TableName"], [])
        return {"TableDescription": self._description(kwargs["TableName"]), "ResponseMetadata": {}}

    def update_table(self, **kwargs):
        self._record("update_table", kwargs)
        return {"TableDescription": self._description(kwargs["TableName"])}

    def describe_table(self, **kwargs):
        self._record("describe_table", kwargs)
        return {"Table": self._description(kwargs["TableName"])}

    def list_tables(self, **kwargs):
        self._record("list_tables", kwargs)
        return {"TableNames": ["Orders", "Users"], "LastEvaluatedTableName": "Users"}

    def put_item(self, **kwargs):
        self._record("put_item", kwargs)
        self.items.setdefault(kwargs["TableName"], []).append(kwargs["Item"])
        return {}

    def get_item(self, **kwargs):
        self._record("get_item", kwargs)
        key = kwargs["Key"]
        for item in self.items.get(kwargs["TableName"], []):
            if all(item.get(k) == v for k, v in key.items()):
                return {"Item": item}
        return {}

    def update_item(self, **kwargs):
        self._record("update_item", kwargs)
        if kwargs.get("ReturnValues", "NONE") == "NONE":
            return {}
        return {"Attributes": {"name": {"S": "Ada"}, "visits": {"N": "3"}}}

    def query(self, **kwargs):
        self._record("query", kwargs)
        items = self.items.get(kwargs["TableName"], [])
        return {"Items": items, "Count": len(items), "ScannedCount": len(items) + self.scanned_extra}

    def scan(self, **kwargs):
        self._record("scan", kwargs)
        items = self.items.get(kwargs["TableName"], [])
        return {"Items": items, "Count": len(items), "ScannedCount": len(items) + self.scanned_extra}


def test_every_registered_tool_has_an_adapter():
    assert set(ADAPTERS) == {spec.name for spec in TOOL_SPECS}


def test_create_table_with_partition_key_only():
    ddb = _FakeDdb()
    body = _call(
        ddb,
        "create_table",
        {
            "tableName": "Users",
            "partitionKey": "userId",
            "partitionKeyType": "S",
            "readCapacity": 5,
            "writeCapacity": 5,
        },
    )

    assert body["success"] is True
    assert body["message"] == "Table Users created successfully"
    assert body["details"]["TableName"] == "Users"
    op, kwargs = ddb.calls[0]
    assert op == "create_table"
    assert kwargs["KeySchema"] == [{"AttributeName": "userId", "KeyType": "HASH"}]
    assert kwargs["AttributeDefinitions"] == [{"AttributeName": "userId", "AttributeType": "S"}]
    assert kwargs["ProvisionedThroughput"] == {"ReadCapacityUnits": 5, "WriteCapacityUnits": 5}


def test_create_table_with_sort_key_and_float_units():
    ddb = _FakeDdb()
    _call(
        ddb,
        "create_table",
        {
            "tableName": "Orders",
            "partitionKey": "customerId",
            "partitionKeyType": "S",
            "sortKey": "createdAt",
            "sortKeyType": "N",
            "readCapacity": 10.0,
            "writeCapacity": 2.0,
        },
    )

    kwargs = ddb.calls[0][1]
    assert kwargs["KeySchema"][1] == {"AttributeName": "createdAt", "KeyType": "RANGE"}
    assert kwargs["AttributeDefinitions"][1] == {"AttributeName": "createdAt", "AttributeType": "N"}
    units = kwargs["ProvisionedThroughput"]
    assert units == {"ReadCapacityUnits": 10, "WriteCapacityUnits": 2}
    assert isinstance(units["ReadCapacityUnits"], int)


def test_create_table_failure_is_reported_not_raised():
    ddb = _FakeDdb()
    ddb.raise_on["create_table"] = _client_error(
        "ResourceInUseException", "Table already exists: Users", "CreateTable"
    )
    body = _call(
        ddb,
        "create_table",
        {
            "tableName": "Users",
            "partitionKey": "userId",
            "partitionKeyType": "S",
            "readCapacity": 5,
            "writeCapacity": 5,
        },
    )

    assert body["success"] is False
    assert body["message"].startswith("Failed to create table: ")
    assert "Table already exists: Users" in body["message"]
    assert body["error"]["kind"] == "external_service"
    assert body["error"]["code"] == "ResourceInUseException"
    assert len(ddb.calls) == 1


def test_list_tables_passes_cursor_only_when_given():
    ddb = _FakeDdb()
    body = _call(ddb, "list_tables", {})
    assert ddb.calls[0][1] == {}
    assert body["tables"] == ["Orders", "Users"]
    assert body["lastEvaluatedTable"] == "Users"

    _call(ddb, "list_tables", {"limit": 1, "exclusiveStartTableName": "Orders"})
    assert ddb.calls[1][1] == {"Limit": 1, "ExclusiveStartTableName": "Orders"}


def test_describe_table_passes_descriptor_through():
    ddb = _FakeDdb()
    body = _call(ddb, "describe_table", {"tableName": "Users"})

    assert body["success"] is True
    assert body["table"]["TableName"] == "Users"
    assert body["table"]["TableStatus"] == "ACTIVE"


def test_create_gsi_include_projection_carries_non_key_attributes():
    ddb = _FakeDdb()
    body = _call(
        ddb,
        "create_gsi",
        {
            "tableName": "Users",
            "indexName": "EmailIndex",
            "partitionKey": "email",
            "partitionKeyType": "S",
            "projectionType": "INCLUDE",
            "nonKeyAttributes": ["name", "plan"],
            "readCapacity": 5,
            "writeCapacity": 5,
        },
    )

    assert body["message"] == "GSI EmailIndex creation initiated on table Users"
    op, kwargs = ddb.calls[0]
    assert op == "update_table"
    create = kwargs["GlobalSecondaryIndexUpdates"][0]["Create"]
    assert create["IndexName"] == "EmailIndex"
    assert create["KeySchema"] == [{"AttributeName": "email", "KeyType": "HASH"}]
    assert create["Projection"] == {"ProjectionType": "INCLUDE", "NonKeyAttributes": ["name", "plan"]}
    assert kwargs["AttributeDefinitions"] == [{"AttributeName": "email", "AttributeType": "S"}]


def test_create_gsi_drops_non_key_attributes_unless_include():
    ddb = _FakeDdb()
    _call(
        ddb,
        "create_gsi",
        {
            "tableName": "Users",
            "indexName": "EmailIndex",
            "partitionKey": "email",
            "partitionKeyType": "S",
            "sortKey": "createdAt",
            "sortKeyType": "N",
            "projectionType": "ALL",
            "nonKeyAttributes": ["ignored"],
            "readCapacity": 5,
            "writeCapacity": 5,
        },
    )

    create = ddb.calls[0][1]["GlobalSecondaryIndexUpdates"][0]["Create"]
    assert create["Projection"] == {"ProjectionType": "ALL"}
    assert create["KeySchema"][1] == {"AttributeName": "createdAt", "KeyType": "RANGE"}


def test_update_gsi_changes_only_throughput():
    ddb = _FakeDdb()
    _call(
        ddb,
        "update_gsi",
        {"tableName": "Users", "indexName": "EmailIndex", "readCapacity": 10, "writeCapacity": 10},
    )

    op, kwargs = ddb.calls[0]
    assert op == "update_table"
    assert set(kwargs) == {"TableName", "GlobalSecondaryIndexUpdates"}
    assert kwargs["GlobalSecondaryIndexUpdates"] == [
        {
            "Update": {
                "IndexName": "EmailIndex",
                "ProvisionedThroughput": {"ReadCapacityUnits": 10, "WriteCapacityUnits": 10},
            }
        }
    ]


def test_update_gsi_missing_index_passes_service_message_through():
    ddb = _FakeDdb()
    ddb.raise_on["update_table"] = _client_error(
        "ResourceNotFoundException",
        "Requested resource not found: Index: EmailIndex not found",
        "UpdateTable",
    )
    body = _call(
        ddb,
        "update_gsi",
        {"tableName": "Users", "indexName": "EmailIndex", "readCapacity": 10, "writeCapacity": 10},
    )

    assert body["success"] is False
    assert "Index: EmailIndex not found" in body["message"]
    assert body["error"]["code"] == "ResourceNotFoundException"


def test_create_lsi_always_creates_a_table_with_default_capacity():
    ddb = _FakeDdb()
    body = _call(
        ddb,
        "create_lsi",
        {
            "tableName": "Events",
            "indexName": "ByType",
            "partitionKey": "deviceId",
            "partitionKeyType": "S",
            "sortKey": "eventType",
            "sortKeyType": "S",
            "projectionType": "KEYS_ONLY",
        },
    )

    assert body["success"] is True
    assert body["message"] == "LSI ByType created on table Events"
    assert [op for op, _ in ddb.calls] == ["create_table"]
    kwargs = ddb.calls[0][1]
    assert kwargs["ProvisionedThroughput"] == {"ReadCapacityUnits": 5, "WriteCapacityUnits": 5}
    assert kwargs["KeySchema"] == [
        {"AttributeName": "deviceId", "KeyType": "HASH"},
        {"AttributeName": "eventType", "KeyType": "RANGE"},
    ]
    lsi = kwargs["LocalSecondaryIndexes"][0]
    assert lsi["IndexName"] == "ByType"
    assert lsi["Projection"] == {"ProjectionType": "KEYS_ONLY"}


def test_create_lsi_on_existing_name_still_issues_create_table():
    ddb = _FakeDdb()
    ddb.raise_on["create_table"] = _client_error(
        "ResourceInUseException", "Table already exists: Events", "CreateTable"
    )
    body = _call(
        ddb,
        "create_lsi",
        {
            "tableName": "Events",
            "indexName": "ByType",
            "partitionKey": "deviceId",
            "partitionKeyType": "S",
            "sortKey": "eventType",
            "sortKeyType": "S",
            "projectionType": "INCLUDE",
            "nonKeyAttributes": ["payload"],
            "readCapacity": 7,
            "writeCapacity": 3,
        },
    )

    assert body["success"] is False
    assert body["message"].startswith("Failed to create LSI: ")
    assert [op for op, _ in ddb.calls] == ["create_table"]
    kwargs = ddb.calls[0][1]
    assert kwargs["ProvisionedThroughput"] == {"ReadCapacityUnits": 7, "WriteCapacityUnits": 3}
    assert kwargs["LocalSecondaryIndexes"][0]["Projection"]["NonKeyAttributes"] == ["payload"]


def test_update_capacity_targets_the_table():
    ddb = _FakeDdb()
    body = _call(ddb, "update_capacity", {"tableName": "Users", "readCapacity": 20, "writeCapacity": 15})

    assert body["message"] == "Capacity updated successfully for table Users"
    kwargs = ddb.calls[0][1]
    assert "GlobalSecondaryIndexUpdates" not in kwargs
    assert kwargs["ProvisionedThroughput"] == {"ReadCapacityUnits": 20, "WriteCapacityUnits": 15}


def test_put_then_get_round_trips_the_item():
    ddb = _FakeDdb()
    item = {
        "userId": "123",
        "name": "Ada",
        "age": 36,
        "score": 9.5,
        "active": True,
        "tags": ["a", "b"],
        "address": {"city": "London", "zip": None},
    }
    put = _call(ddb, "put_item", {"tableName": "Users", "item": item})
    got = _call(ddb, "get_item", {"tableName": "Users", "key": {"userId": "123"}})

    assert put["success"] is True
    assert put["item"] == item
    assert ddb.calls[0][1]["Item"]["age"] == {"N": "36"}
    assert got["success"] is True
    assert got["item"] == item


def test_get_item_absent_is_success_with_null_item():
    ddb = _FakeDdb()
    body = _call(ddb, "get_item", {"tableName": "Users", "key": {"userId": "123"}})

    assert body["success"] is True
    assert body["item"] is None
    assert ddb.calls[0][1]["Key"] == {"userId": {"S": "123"}}


def test_update_item_defaults_return_values_to_none():
    ddb = _FakeDdb()
    body = _call(
        ddb,
        "update_item",
        {
            "tableName": "Users",
            "key": {"userId": "123"},
            "updateExpression": "SET #n = :name",
            "expressionAttributeNames": {"#n": "name"},
            "expressionAttributeValues": {":name": "Ada"},
        },
    )

    assert body["success"] is True
    assert body["attributes"] is None
    kwargs = ddb.calls[0][1]
    assert kwargs["ReturnValues"] == "NONE"
    assert kwargs["ExpressionAttributeValues"] == {":name": {"S": "Ada"}}
    assert "ConditionExpression" not in kwargs


def test_update_item_with_condition_returns_attributes():
    ddb = _FakeDdb()
    body = _call(
        ddb,
        "update_item",
        {
            "tableName": "Users",
            "key": {"userId": "123"},
            "updateExpression": "SET visits = visits + :one",
            "expressionAttributeNames": {},
            "expressionAttributeValues": {":one": 1},
            "conditionExpression": "attribute_exists(userId)",
            "returnValues": "ALL_NEW",
        },
    )

    assert body["attributes"] == {"name": "Ada", "visits": 3}
    kwargs = ddb.calls[0][1]
    assert kwargs["ConditionExpression"] == "attribute_exists(userId)"
    assert "ExpressionAttributeNames" not in kwargs


def test_update_item_conditional_check_failure_is_reported():
    ddb = _FakeDdb()
    ddb.raise_on["update_item"] = _client_error(
        "ConditionalCheckFailedException", "The conditional request failed", "UpdateItem"
    )
    body = _call(
        ddb,
        "update_item",
        {
            "tableName": "Users",
            "key": {"userId": "123"},
            "updateExpression": "SET #n = :name",
            "expressionAttributeNames": {"#n": "name"},
            "expressionAttributeValues": {":name": "Ada"},
            "conditionExpression": "attribute_exists(userId)",
        },
    )

    assert body["success"] is False
    assert body["message"].startswith("Failed to update item: ")
    assert body["error"]["code"] == "ConditionalCheckFailedException"


def test_query_returns_items_and_counts():
    ddb = _FakeDdb()
    ddb.items["Users"] = [{"userId": {"S": "1"}, "age": {"N": "40"}}]
    ddb.scanned_extra = 2
    body = _call(
        ddb,
        "query_table",
        {
            "tableName": "Users",
            "keyConditionExpression": "userId = :id",
            "expressionAttributeValues": {":id": "1", ":min": 30},
            "filterExpression": "age > :min",
            "limit": 10,
        },
    )

    assert body["items"] == [{"userId": "1", "age": 40}]
    assert body["count"] == len(body["items"]) == 1
    assert body["scannedCount"] >= body["count"]
    kwargs = ddb.calls[0][1]
    assert kwargs["ExpressionAttributeValues"] == {":id": {"S": "1"}, ":min": {"N": "30"}}
    assert kwargs["FilterExpression"] == "age > :min"
    assert kwargs["Limit"] == 10
    assert "ExpressionAttributeNames" not in kwargs


def test_scan_without_filter_sends_only_table_name():
    ddb = _FakeDdb()
    body = _call(ddb, "scan_table", {"tableName": "Users"})

    assert ddb.calls[0][1] == {"TableName": "Users"}
    assert body["items"] == []
    assert body["count"] == 0
    assert body["scannedCount"] == 0


def test_scan_with_filter_reports_scanned_count():
    ddb = _FakeDdb()
    ddb.items["Users"] = [{"userId": {"S": "1"}}, {"userId": {"S": "2"}}]
    ddb.scanned_extra = 5
    body = _call(
        ddb,
        "scan_table",
        {
            "tableName": "Users",
            "filterExpression": "#s = :s",
            "expressionAttributeNames": {"#s": "status"},
            "expressionAttributeValues": {":s": "active"},
        },
    )

    assert body["count"] == 2
    assert body["scannedCount"] == 7
    assert ddb.calls[0][1]["ExpressionAttributeNames"] == {"#s": "status"}


def test_unsupported_item_value_becomes_failure_envelope():
    ddb = _FakeDdb()
    body = _call(ddb, "put_item", {"tableName": "Users", "item": {"userId": "1", "blob": object()}})

    assert body["success"] is False
    assert body["message"].startswith("Failed to put item: ")
    assert ddb.calls == []


@pytest.mark.parametrize("value", [10**40, 1e-200], ids=["too_precise", "too_small"])
def test_out_of_range_number_becomes_failure_envelope(value):
    ddb = _FakeDdb()
    body = _call(ddb, "put_item", {"tableName": "Users", "item": {"userId": "1", "n": value}})

    assert body["success"] is False
    assert body["message"].startswith("Failed to put item: ")
    assert body["error"]["kind"] == "external_service"
    assert ddb.calls == []


def test_adapter_logs_failures(caplog):
    ddb = _FakeDdb()
    ddb.raise_on["describe_table"] = _client_error("AccessDeniedException", "denied", "DescribeTable")
    with caplog.at_level("ERROR", logger=adapters.logger.name):
        _call(ddb, "describe_table", {"tableName": "Users"})

    assert any("describe table" in r.getMessage() for r in caplog.records)

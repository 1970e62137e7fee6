"""serialization.py — Plain JSON values <-> DynamoDB attribute values.

Wraps boto3's TypeSerializer/TypeDeserializer. Tool arguments arrive as
decoded JSON, so floats are turned into Decimal on the way in, and results
are turned back into JSON-friendly values on the way out: Decimal becomes
int or float, Binary becomes base64 text, sets become sorted lists.
"""
from __future__ import annotations

import base64
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from boto3.dynamodb.types import Binary, TypeDeserializer, TypeSerializer

__all__ = [
    "marshall",
    "marshall_value",
    "to_plain",
    "unmarshall",
    "unmarshall_value",
]

_SER = TypeSerializer()
_DESER = TypeDeserializer()


def _to_dynamo(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, Mapping):
        return {k: _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_dynamo(v) for v in value]
    return value


def to_plain(value: Any) -> Any:
    """Convert a deserialized DynamoDB value into plain JSON-friendly data."""
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, Binary):
        return base64.b64encode(value.value).decode("ascii")
    if isinstance(value, (bytes, bytearray)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Mapping):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(to_plain(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


def marshall_value(value: Any) -> Dict[str, Any]:
    """Serialize a single value into its attribute-value form, e.g. ``{"S": "x"}``."""
    return _SER.serialize(_to_dynamo(value))


def marshall(item: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Serialize a mapping of attribute name -> value (an item, key or value map)."""
    if item is None:
        return {}
    return {k: marshall_value(v) for k, v in item.items()}


def unmarshall_value(raw: Mapping[str, Any]) -> Any:
    return to_plain(_DESER.deserialize(raw))


def unmarshall(item: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    """Deserialize an item; ``None`` stays ``None``."""
    if item is None:
        return None
    return {k: unmarshall_value(v) for k, v in item.items()}

"""
dynamo-cache coders for encoding and decoding cached values.

A coder turns an application value into a single DynamoDB attribute value
and back. The store keeps that attribute next to the key and TTL attributes.
"""
import datetime
import json
import pickle  # nosec:B403
from decimal import Decimal
from typing import Any, Callable, Dict, Mapping

import pendulum
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer

from .types import AttributeValue, Coder, Item

_serializer = TypeSerializer()
_deserializer = TypeDeserializer()


# JSON has no date or decimal type; those are written as one-key tagged
# objects such as {"$date": "2024-01-02"}.
_TAGS: Dict[str, Callable[[str], Any]] = {
    "$datetime": lambda text: pendulum.parse(text, exact=True),
    "$date": lambda text: pendulum.parse(text, exact=True),
    "$decimal": Decimal,
}


def _json_default(o: Any) -> Dict[str, str]:
    if isinstance(o, datetime.datetime):
        return {"$datetime": o.isoformat()}
    if isinstance(o, datetime.date):
        return {"$date": o.isoformat()}
    if isinstance(o, Decimal):
        return {"$decimal": str(o)}
    raise TypeError(f"JsonCoder cannot encode {type(o).__name__!r} values")


def _json_object_hook(obj: Dict[str, Any]) -> Any:
    if len(obj) != 1:
        return obj
    (tag, text), = obj.items()
    if tag not in _TAGS or not isinstance(text, str):
        return obj
    return _TAGS[tag](text)


def _to_dynamo(value: Any) -> Any:
    """Replace floats with Decimals, the only number type boto3 accepts."""
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, Mapping):
        return {k: _to_dynamo(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_dynamo(v) for v in value]
    return value


def _from_dynamo(value: Any) -> Any:
    """Turn the Decimals boto3 hands back into ints or floats."""
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {k: _from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_dynamo(v) for v in value]
    return value


def serialize_fields(fields: Mapping[str, Any]) -> Item:
    """Serialize plain python fields (e.g. metadata) into attribute values."""
    return {name: _serializer.serialize(_to_dynamo(v)) for name, v in fields.items()}


class NativeCoder(Coder):
    """Coder storing values as native DynamoDB maps, lists, numbers and strings."""

    @classmethod
    def encode(cls, value: Any) -> AttributeValue:
        """Encode value to a native attribute value."""
        return _serializer.serialize(_to_dynamo(value))

    @classmethod
    def decode(cls, value: AttributeValue) -> Any:
        """Decode a native attribute value."""
        return _from_dynamo(_deserializer.deserialize(value))


class JsonCoder(Coder):
    """JSON-based coder storing values in a string attribute."""

    @classmethod
    def encode(cls, value: Any) -> AttributeValue:
        """Encode value to a JSON string attribute."""
        return {"S": json.dumps(value, default=_json_default)}

    @classmethod
    def decode(cls, value: AttributeValue) -> Any:
        """Decode a JSON string attribute."""
        return json.loads(value["S"], object_hook=_json_object_hook)


class PickleCoder(Coder):
    """Pickle-based coder storing values in a binary attribute."""

    @classmethod
    def encode(cls, value: Any) -> AttributeValue:
        """Encode value to a pickled binary attribute."""
        return {"B": pickle.dumps(value)}

    @classmethod
    def decode(cls, value: AttributeValue) -> Any:
        """Decode a pickled binary attribute."""
        return pickle.loads(bytes(value["B"]))  # noqa: S301


class StringCoder(Coder):
    """Simple string-based coder."""

    @classmethod
    def encode(cls, value: Any) -> AttributeValue:
        """Encode value to a string attribute."""
        return {"S": str(value)}

    @classmethod
    def decode(cls, value: AttributeValue) -> str:
        """Decode a string attribute."""
        return value["S"]

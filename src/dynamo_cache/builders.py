"""
Request builders for the DynamoDB client.

Every builder returns the keyword arguments of one aiobotocore DynamoDB client
method and performs no I/O. Batch builders take either a ``Fresh`` list of
cache keys/entries or a ``Remainder``: the ``UnprocessedKeys`` /
``UnprocessedItems`` map DynamoDB returned for a previous attempt, which is
forwarded as is.
"""
from dataclasses import dataclass
from typing import Any, Dict, Generic, Mapping, Optional, Sequence, Tuple, TypeVar, Union

from .config import StoreConfig
from .expiration import compute_expires_at
from .keys import decode_key, split_pattern
from .types import Item, Milliseconds

T = TypeVar("T")

KeyEntry = Tuple[str, Item]
Request = Dict[str, Any]

_NO_WRITE_STATS = {
    "ReturnConsumedCapacity": "NONE",
    "ReturnItemCollectionMetrics": "NONE",
}


@dataclass(frozen=True)
class Fresh(Generic[T]):
    """Batch built from cache keys or (key, attributes) entries."""
    items: Sequence[T]


@dataclass(frozen=True)
class Remainder:
    """Batch made of the unprocessed part of a previous DynamoDB response."""
    request_items: Mapping[str, Any]


Batch = Union[Fresh[T], Remainder]


def _key_names(config: StoreConfig) -> Dict[str, str]:
    names = {"#pk": config.keys.partition}
    if config.keys.sort is not None:
        names["#sk"] = config.keys.sort
    return names


def _projection(config: StoreConfig) -> str:
    return "#pk, #sk" if config.keys.sort is not None else "#pk"


def _item(key: str, attributes: Item, config: StoreConfig, ttl: Milliseconds, now: Milliseconds) -> Item:
    # key and expiry attributes always win over value/meta fields
    return {
        **attributes,
        **decode_key(key, config.keys),
        config.keys.expires: {"N": str(compute_expires_at(ttl, now))},
    }


def _paginate(request: Request, cursor: Optional[Item], config: StoreConfig) -> Request:
    if cursor:
        request["ExclusiveStartKey"] = cursor
    if config.page_size:
        request["Limit"] = config.page_size
    return request


def build_get_input(key: str, config: StoreConfig) -> Request:
    return {
        "TableName": config.table,
        "Key": decode_key(key, config.keys),
        "ReturnConsumedCapacity": "NONE",
    }


def build_set_input(
    key: str, attributes: Item, config: StoreConfig, ttl: Milliseconds, now: Milliseconds
) -> Request:
    return {
        "TableName": config.table,
        "Item": _item(key, attributes, config, ttl, now),
        "ReturnValues": "NONE",
        **_NO_WRITE_STATS,
    }


def build_delete_input(key: str, config: StoreConfig) -> Request:
    return {
        "TableName": config.table,
        "Key": decode_key(key, config.keys),
    }


def build_mget_input(batch: "Batch[str]", config: StoreConfig) -> Request:
    if isinstance(batch, Remainder):
        return {"RequestItems": dict(batch.request_items)}
    return {
        "RequestItems": {
            config.table: {"Keys": [decode_key(key, config.keys) for key in batch.items]}
        }
    }


def build_mset_input(
    batch: "Batch[KeyEntry]", config: StoreConfig, ttl: Milliseconds, now: Milliseconds
) -> Request:
    if isinstance(batch, Remainder):
        request_items = dict(batch.request_items)
    else:
        request_items = {
            config.table: [
                {"PutRequest": {"Item": _item(key, attributes, config, ttl, now)}}
                for key, attributes in batch.items
            ]
        }
    return {"RequestItems": request_items, **_NO_WRITE_STATS}


def build_mdelete_input(batch: "Batch[str]", config: StoreConfig) -> Request:
    if isinstance(batch, Remainder):
        request_items = dict(batch.request_items)
    else:
        request_items = {
            config.table: [
                {"DeleteRequest": {"Key": decode_key(key, config.keys)}}
                for key in batch.items
            ]
        }
    return {"RequestItems": request_items, **_NO_WRITE_STATS}


def build_scan_keys_input(cursor: Optional[Item], config: StoreConfig) -> Request:
    request = {
        "TableName": config.table,
        "ExpressionAttributeNames": _key_names(config),
        "ProjectionExpression": _projection(config),
    }
    return _paginate(request, cursor, config)


def build_query_keys_input(pattern: str, cursor: Optional[Item], config: StoreConfig) -> Request:
    """
    Query keys of one partition whose sort key starts with the pattern prefix.

    The pattern must already be validated, so the schema has a sort key. An
    empty prefix (``"bar+*"``) lists the whole partition, since DynamoDB
    rejects empty strings in key conditions.
    """
    partition, prefix = split_pattern(pattern)
    request: Request = {
        "TableName": config.table,
        "KeyConditionExpression": "#pk = :pk",
        "ExpressionAttributeNames": _key_names(config),
        "ExpressionAttributeValues": {":pk": {"S": partition}},
        "ProjectionExpression": _projection(config),
    }
    if prefix:
        request["KeyConditionExpression"] += " and begins_with(#sk, :sk)"
        request["ExpressionAttributeValues"][":sk"] = {"S": prefix}
    return _paginate(request, cursor, config)


def build_ttl_input(key: str, config: StoreConfig) -> Request:
    return {
        "TableName": config.table,
        "Key": decode_key(key, config.keys),
        "ExpressionAttributeNames": {"#ex": config.keys.expires},
        "ProjectionExpression": "#ex",
        "ReturnConsumedCapacity": "NONE",
    }


def build_touch_input(key: str, config: StoreConfig, ttl: Milliseconds, now: Milliseconds) -> Request:
    """Update only the expiration attribute of an existing item."""
    return {
        "TableName": config.table,
        "Key": decode_key(key, config.keys),
        "UpdateExpression": "SET #ex = :ex",
        "ExpressionAttributeNames": {"#ex": config.keys.expires},
        "ExpressionAttributeValues": {":ex": {"N": str(compute_expires_at(ttl, now))}},
        "ReturnValues": "NONE",
        **_NO_WRITE_STATS,
    }

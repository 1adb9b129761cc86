"""
Mapping between cache keys and the table's partition/sort key.

A cache key is ``"<partition>+<sort>"`` for tables with a sort key and plain
``"<partition>"`` otherwise. Listing keys by prefix uses patterns of the form
``"<partition>+<sort prefix>*"``, the only shape a DynamoDB query supports
through ``begins_with`` on the sort key.
"""
from typing import Any, Mapping, Optional, Tuple

from .config import KeySchema
from .exceptions import InvalidPatternError, MalformedKeyError
from .types import StoreKey

DELIMITER = "+"
MASK = "*"


def _string_attribute(record: Mapping[str, Any], name: str) -> str:
    value = record.get(name, {}).get("S")
    if not isinstance(value, str):
        raise MalformedKeyError(dict(record), f"missing string attribute {name!r}")
    return value


def encode_key(record: Mapping[str, Any], schema: KeySchema) -> str:
    """
    Build the cache key of an item (or item key) returned by DynamoDB.

    Args:
        record: Item attributes, at least the key attributes
        schema: Table key schema

    Returns:
        Cache key string
    """
    partition = _string_attribute(record, schema.partition)
    if schema.sort is None:
        return partition
    return f"{partition}{DELIMITER}{_string_attribute(record, schema.sort)}"


def decode_key(key: Any, schema: KeySchema) -> StoreKey:
    """
    Build the DynamoDB key of a cache key.

    Only the first delimiter splits the key, so sort values may contain it.
    Without a sort key in the schema the key is a single partition value.

    Raises:
        MalformedKeyError: if the key is not a non-empty string, starts with
            the delimiter, has an empty or missing sort part while the schema
            needs one, or holds a sort part while the schema has none
    """
    if not isinstance(key, str) or not key or key.startswith(DELIMITER):
        raise MalformedKeyError(key)

    partition, delimiter, sort = key.partition(DELIMITER)
    store_key: StoreKey = {schema.partition: {"S": partition}}
    if schema.sort is None:
        if delimiter:
            raise MalformedKeyError(key, "table has no sort key for this cache key")
        return store_key
    if not sort:
        raise MalformedKeyError(key, "cache key has no sort part")
    store_key[schema.sort] = {"S": sort}
    return store_key


def split_pattern(pattern: str) -> Tuple[str, str]:
    """Split a validated pattern into its partition value and sort prefix."""
    partition, _, prefix = strip_mask(pattern).partition(DELIMITER)
    return partition, prefix


def validate_pattern(pattern: Optional[str], schema: KeySchema) -> None:
    """
    Check a key pattern such as ``"bar+fo*"``. An empty pattern matches everything.

    Raises:
        InvalidPatternError: if the pattern does not end with a single mask,
            does not hold exactly one delimiter after a non-empty partition
            or the table has no sort key
    """
    if not pattern:
        return

    is_valid = (
        isinstance(pattern, str)
        and schema.sort is not None
        and not pattern.startswith(DELIMITER)
        and pattern.endswith(MASK)
        and len(pattern.split(MASK)) < 3
        and len(pattern.split(DELIMITER)) == 2
    )
    if not is_valid:
        raise InvalidPatternError(pattern)


def strip_mask(pattern: str) -> str:
    """Remove the mask, leaving ``"<partition>+<sort prefix>"``."""
    return pattern.replace(MASK, "", 1)

"""
dynamo-cache - An asyncio cache store backed by Amazon DynamoDB.

Cache keys map onto the table's partition and sort key, values go through a
pluggable coder, and expiration relies on DynamoDB's TTL attribute. Batch
operations respect DynamoDB's request limits and retry unprocessed items
with exponential backoff.
"""

__version__ = "0.1.0"

# Core components
from .backends import DynamoDBStore, create
from .config import DEFAULT_TTL, KeySchema, RetryPolicy, StoreConfig
from .types import Coder, MetaBuilder, Store

# Coders
from .coders import JsonCoder, NativeCoder, PickleCoder, StringCoder

# Errors
from .exceptions import (
    CacheError,
    InvalidPatternError,
    MalformedKeyError,
    UnprocessedDataError,
)

__all__ = [
    # Core
    "DynamoDBStore",
    "create",
    "DEFAULT_TTL",
    "KeySchema",
    "RetryPolicy",
    "StoreConfig",

    # Types
    "Coder",
    "MetaBuilder",
    "Store",

    # Coders
    "JsonCoder",
    "NativeCoder",
    "PickleCoder",
    "StringCoder",

    # Errors
    "CacheError",
    "InvalidPatternError",
    "MalformedKeyError",
    "UnprocessedDataError",
]

"""
dynamo-cache store configuration.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Type

from .coders import NativeCoder
from .types import Coder, MetaBuilder, Milliseconds

DEFAULT_TTL: Milliseconds = 60000


def has_unprocessed(remainder: Optional[Mapping[str, Any]]) -> bool:
    """Default retry predicate: retry while DynamoDB hands back any items."""
    return bool(remainder)


@dataclass(frozen=True)
class KeySchema:
    """Attribute names of the table key and of the TTL attribute."""
    partition: str
    sort: Optional[str] = None
    expires: str = "expires"


@dataclass(frozen=True)
class RetryPolicy:
    """
    Backoff settings for batch requests that come back partially processed.

    ``should_retry`` receives the unprocessed remainder of the last attempt and
    decides whether another attempt is made. Delays are in seconds and double
    on every attempt, capped at ``max_delay``.
    """
    max_attempts: int = 10
    base_delay: float = 0.05
    max_delay: float = 2.0
    should_retry: Callable[[Optional[Mapping[str, Any]]], bool] = has_unprocessed


@dataclass(frozen=True)
class StoreConfig:
    """
    Everything DynamoDBStore needs to know about its table.

    Args:
        table: DynamoDB table name
        keys: Key schema of the table
        ttl: Default time to live in milliseconds
        meta: Optional callable returning extra fields stored next to the value
        coder: Coder used for the value attribute
        value_attribute: Name of the attribute holding the encoded value
        page_size: Optional ``Limit`` for scan/query pages
        retry: Backoff policy for partially processed batches
    """
    table: str
    keys: KeySchema
    ttl: Milliseconds = DEFAULT_TTL
    meta: Optional[MetaBuilder] = None
    coder: Type[Coder] = NativeCoder
    value_attribute: str = "data"
    page_size: Optional[int] = None
    retry: RetryPolicy = field(default_factory=RetryPolicy)

    def resolve_ttl(self, ttl: Optional[Milliseconds]) -> Milliseconds:
        """Return the given ttl, falling back to the configured default."""
        return ttl or self.ttl

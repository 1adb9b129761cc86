"""
dynamo-cache store types and interfaces.
"""
import abc
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from typing_extensions import Protocol

# DynamoDB's wire representation of a single attribute, e.g. {"S": "foo"}.
AttributeValue = Dict[str, Any]
# A full item or key as sent to / returned by the low level client.
Item = Dict[str, AttributeValue]
StoreKey = Item

Milliseconds = int


class MetaBuilder(Protocol):
    """Protocol for callables deriving extra item fields from a cached value."""

    def __call__(self, __value: Any) -> Mapping[str, Any]:
        """Return plain python fields to store next to the value."""
        ...


class Store(abc.ABC):
    """Abstract base class for cache stores consumed by a caching facade."""

    @abc.abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Get value by key."""
        raise NotImplementedError

    @abc.abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[Milliseconds] = None) -> None:
        """Set value with optional time to live in milliseconds."""
        raise NotImplementedError

    @abc.abstractmethod
    async def delete(self, key: str) -> None:
        """Delete a single key."""
        raise NotImplementedError

    @abc.abstractmethod
    async def mget(self, *keys: str) -> List[Optional[Any]]:
        """Get many values, aligned with the requested keys."""
        raise NotImplementedError

    @abc.abstractmethod
    async def mset(
        self, entries: Iterable[Tuple[str, Any]], ttl: Optional[Milliseconds] = None
    ) -> None:
        """Set many (key, value) pairs sharing one time to live."""
        raise NotImplementedError

    @abc.abstractmethod
    async def mdelete(self, *keys: str) -> None:
        """Delete many keys."""
        raise NotImplementedError

    @abc.abstractmethod
    async def keys(self, pattern: Optional[str] = None) -> List[str]:
        """List stored keys, optionally restricted by a prefix pattern."""
        raise NotImplementedError

    @abc.abstractmethod
    async def ttl(self, key: str) -> Milliseconds:
        """Remaining time to live in milliseconds, -1 if the key is absent."""
        raise NotImplementedError

    @abc.abstractmethod
    async def touch(self, key: str, ttl: Optional[Milliseconds] = None) -> None:
        """Refresh the expiration of a key without changing its value."""
        raise NotImplementedError

    @abc.abstractmethod
    async def reset(self) -> None:
        """Delete every key."""
        raise NotImplementedError


class Coder(abc.ABC):
    """Abstract base class for value encoders/decoders."""

    @classmethod
    @abc.abstractmethod
    def encode(cls, value: Any) -> AttributeValue:
        """Encode value to a DynamoDB attribute value."""
        raise NotImplementedError

    @classmethod
    @abc.abstractmethod
    def decode(cls, value: AttributeValue) -> Any:
        """Decode a DynamoDB attribute value to a value."""
        raise NotImplementedError

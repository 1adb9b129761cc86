"""
DynamoDB cache store implementation.
"""
import logging
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)

from aiobotocore.client import AioBaseClient
from aiobotocore.session import AioSession, get_session

from ..batch import batch_get, batch_write
from ..builders import (
    build_delete_input,
    build_get_input,
    build_mdelete_input,
    build_mget_input,
    build_mset_input,
    build_set_input,
    build_touch_input,
    build_ttl_input,
)
from ..coders import serialize_fields
from ..config import KeySchema, StoreConfig
from ..expiration import is_expired, now_ms, remaining_ttl
from ..keys import encode_key
from ..listing import list_keys
from ..types import Item, Milliseconds, Store

if TYPE_CHECKING:
    from types_aiobotocore_dynamodb import DynamoDBClient  # type: ignore
else:
    DynamoDBClient = AioBaseClient

logger: logging.Logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class DynamoDBStore(Store):
    """
    Amazon DynamoDB cache store.

    The table must already exist with a string partition key and, optionally,
    a string sort key. Cache keys are ``"<partition>+<sort>"`` (or just
    ``"<partition>"`` without a sort key). TTL has to be enabled on the table
    for the ``keys.expires`` attribute: DynamoDB takes care of deleting
    outdated items, but this is not instant, so reads check the expiration
    themselves and report expired items as missing.

    Either pass a ready aiobotocore DynamoDB client, or client keyword
    arguments (``region_name``, ``endpoint_url``...) to have the store create
    one on first use. Only a client created by the store is closed by it.

    Usage:
        >> config = StoreConfig(table="your-cache", keys=KeySchema("pk", "sk"))
        >> async with DynamoDBStore(config, region_name="eu-west-1") as store:
        >>     await store.set("user+42", {"name": "bob"}, ttl=30000)
    """

    def __init__(
        self,
        config: StoreConfig,
        client: Optional["DynamoDBClient"] = None,
        **client_kwargs: Any,
    ) -> None:
        self.config = config
        self.client: Optional["DynamoDBClient"] = client
        self.session: Optional[AioSession] = None
        self._client_kwargs = client_kwargs
        self._owns_client = False

    async def init(self) -> None:
        """Initialize the DynamoDB client unless one was given."""
        if self.client is None:
            self.session = get_session()
            self.client = await self.session.create_client(  # type: ignore
                "dynamodb", **self._client_kwargs
            ).__aenter__()
            self._owns_client = True

    async def close(self) -> None:
        """Close the DynamoDB client if the store created it."""
        if self.client is not None and self._owns_client:
            await self.client.__aexit__(None, None, None)
            self.client = None
            self._owns_client = False

    async def __aenter__(self) -> "DynamoDBStore":
        await self.init()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _client(self) -> "DynamoDBClient":
        if self.client is None:
            await self.init()
        return self.client  # type: ignore[return-value]

    def _attributes(self, value: Any) -> Item:
        """Encoded value plus metadata fields; the value attribute wins on clashes."""
        meta = self.config.meta(value) if self.config.meta else {}
        return {
            **serialize_fields(meta),
            self.config.value_attribute: self.config.coder.encode(value),
        }

    def _value(self, item: Optional[Item], now: Milliseconds) -> Optional[Any]:
        if not item or is_expired(item, self.config.keys.expires, now):
            return None
        attribute = item.get(self.config.value_attribute)
        if attribute is None:
            return None
        return self.config.coder.decode(attribute)

    def _encode(self, item: Item) -> str:
        return encode_key(item, self.config.keys)

    async def get(self, key: str) -> Optional[Any]:
        """Get value by key. Expired items are reported as missing."""
        request = build_get_input(key, self.config)
        client = await self._client()
        response = await client.get_item(**request)
        return self._value(response.get("Item"), now_ms())

    async def set(self, key: str, value: Any, ttl: Optional[Milliseconds] = None) -> None:
        """Set value with optional time to live in milliseconds."""
        request = build_set_input(
            key, self._attributes(value), self.config, self.config.resolve_ttl(ttl), now_ms()
        )
        client = await self._client()
        await client.put_item(**request)

    async def delete(self, key: str) -> None:
        """Delete a single key."""
        request = build_delete_input(key, self.config)
        client = await self._client()
        await client.delete_item(**request)

    async def mget(self, *keys: str) -> List[Optional[Any]]:
        """
        Get many values, aligned with ``keys``.

        Missing and expired entries come back as None. Not atomic: keys are
        read in concurrent chunks of 100.
        """
        client = await self._client()
        found = await batch_get(
            client,
            list(dict.fromkeys(keys)),
            lambda batch: build_mget_input(batch, self.config),
            self.config.table,
            self._encode,
            self.config.retry,
        )
        now = now_ms()
        return [self._value(found.get(key), now) for key in keys]

    async def mset(
        self, entries: Iterable[Tuple[str, Any]], ttl: Optional[Milliseconds] = None
    ) -> None:
        """
        Set many (key, value) pairs sharing one time to live.

        Not atomic: entries are written in concurrent chunks of 25 and a failed
        chunk leaves the others applied. A repeated key keeps its last value.
        """
        ttl = self.config.resolve_ttl(ttl)
        now = now_ms()
        items = [(key, self._attributes(value)) for key, value in dict(entries).items()]
        client = await self._client()
        await batch_write(
            client,
            items,
            lambda batch: build_mset_input(batch, self.config, ttl, now),  # type: ignore[arg-type]
            self.config.retry,
        )

    async def mdelete(self, *keys: str) -> None:
        """Delete many keys in concurrent chunks of 25."""
        client = await self._client()
        await batch_write(
            client,
            list(dict.fromkeys(keys)),
            lambda batch: build_mdelete_input(batch, self.config),
            self.config.retry,
        )

    async def keys(self, pattern: Optional[str] = None) -> List[str]:
        """
        List stored keys, including expired ones DynamoDB has not deleted yet.

        Args:
            pattern: Optional ``"<partition>+<sort prefix>*"`` pattern
        """
        client = await self._client()
        return await list_keys(client, self.config, pattern)

    async def ttl(self, key: str) -> Milliseconds:
        """Remaining time to live in milliseconds, -1 if the key is absent."""
        request = build_ttl_input(key, self.config)
        client = await self._client()
        response = await client.get_item(**request)
        return remaining_ttl(response.get("Item"), self.config.keys.expires, now_ms())

    async def touch(self, key: str, ttl: Optional[Milliseconds] = None) -> None:
        """Push back the expiration of a key without rewriting its value."""
        request = build_touch_input(key, self.config, self.config.resolve_ttl(ttl), now_ms())
        client = await self._client()
        await client.update_item(**request)

    async def reset(self) -> None:
        """Delete every key of the table."""
        keys = await self.keys()
        logger.debug("Resetting %s: deleting %d key(s)", self.config.table, len(keys))
        await self.mdelete(*keys)


def create(
    table: str,
    keys: Union[KeySchema, Mapping[str, Any]],
    client: Optional["DynamoDBClient"] = None,
    client_kwargs: Optional[Dict[str, Any]] = None,
    **options: Any,
) -> DynamoDBStore:
    """
    Build a DynamoDBStore from plain arguments.

    Args:
        table: DynamoDB table name
        keys: KeySchema, or a mapping with ``partition``, ``sort`` and ``expires``
        client: Ready DynamoDB client, created lazily when omitted
        client_kwargs: Arguments for ``create_client`` when no client is given
        **options: Remaining StoreConfig fields (ttl, meta, coder, ...)
    """
    schema = keys if isinstance(keys, KeySchema) else KeySchema(**keys)
    config = StoreConfig(table=table, keys=schema, **options)
    return DynamoDBStore(config, client, **(client_kwargs or {}))

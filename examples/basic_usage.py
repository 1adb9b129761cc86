"""
Basic usage examples for dynamo-cache.

Expects a table with string keys "Id" (partition) and "Name" (sort) and TTL
enabled on "ExpiresAt", e.g. on a local DynamoDB at http://127.0.0.1:4566.
"""

import asyncio
import time

from dynamo_cache import DynamoDBStore, KeySchema, StoreConfig


async def basic_example(store: DynamoDBStore):
    """Basic store usage example."""
    print("=== Basic Store Usage ===")

    await store.set("123+foo", {"message": "Hello, World!"}, ttl=60000)
    value = await store.get("123+foo")
    print(f"Cached value: {value}")
    print(f"Remaining ttl: {await store.ttl('123+foo')}ms")

    await store.touch("123+foo", ttl=3600000)
    print(f"Remaining ttl after touch: {await store.ttl('123+foo')}ms")


async def batch_example(store: DynamoDBStore):
    """Batch operations and key listing example."""
    print("\n=== Batch Usage ===")

    await store.mset([("123+bar", 1), ("123+baz", None), ("456+bob", [{"a": "b"}])])
    print(f"Values: {await store.mget('123+bar', '123+baz', '456+bob', '789+none')}")
    print(f"Keys starting with 123+b: {await store.keys('123+b*')}")
    print(f"All keys: {await store.keys()}")

    await store.reset()
    print("Cache reset")


async def main():
    """Run all examples."""
    config = StoreConfig(
        table="TestCache",
        keys=KeySchema(partition="Id", sort="Name", expires="ExpiresAt"),
        ttl=300000,
        meta=lambda value: {"CreatedAt": int(time.time())},
    )
    async with DynamoDBStore(
        config, region_name="us-east-1", endpoint_url="http://127.0.0.1:4566"
    ) as store:
        await basic_example(store)
        await batch_example(store)


if __name__ == "__main__":
    asyncio.run(main())

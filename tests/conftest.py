"""
Pytest fixtures shared across all test modules.

Provides:
- FakeDynamoDBClient, an in-memory stand-in for the aiobotocore DynamoDB
  client covering the calls DynamoDBStore makes (with scan/query pagination)
- A DynamoDBStore wired to it, with backoff delays disabled
"""
import copy
from typing import Any, Dict, List, Optional, Tuple

import pytest

from dynamo_cache import DynamoDBStore, KeySchema, RetryPolicy, StoreConfig

TABLE = "TestCache"


class FakeDynamoDBClient:
    """Keeps items in a dict and records every call as (method, kwargs)."""

    def __init__(self, table: str, schema: KeySchema) -> None:
        self.table = table
        self.schema = schema
        self.items: Dict[Tuple[str, Optional[str]], Dict[str, Any]] = {}
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    # helpers

    def _key_of(self, key: Dict[str, Any]) -> Tuple[str, Optional[str]]:
        sort = key[self.schema.sort]["S"] if self.schema.sort else None
        return key[self.schema.partition]["S"], sort

    def _key_attributes(self, item: Dict[str, Any]) -> Dict[str, Any]:
        names = [self.schema.partition] + ([self.schema.sort] if self.schema.sort else [])
        return {name: copy.deepcopy(item[name]) for name in names}

    @staticmethod
    def _project(item: Dict[str, Any], projection: Optional[str], names: Dict[str, str]) -> Dict[str, Any]:
        if not projection:
            return copy.deepcopy(item)
        wanted = [names.get(part.strip(), part.strip()) for part in projection.split(",")]
        return {name: copy.deepcopy(item[name]) for name in wanted if name in item}

    def _check_table(self, table: str) -> None:
        if table != self.table:
            raise ValueError(f"Requested resource not found: {table}")

    def _page(self, keys: List[Tuple[str, Optional[str]]], kwargs: Dict[str, Any]) -> Dict[str, Any]:
        keys = sorted(keys, key=lambda k: (k[0], k[1] or ""))
        start = kwargs.get("ExclusiveStartKey")
        if start:
            after = self._key_of(start)
            keys = [k for k in keys if (k[0], k[1] or "") > (after[0], after[1] or "")]
        limit = kwargs.get("Limit")
        page = keys[:limit] if limit else keys
        names = kwargs.get("ExpressionAttributeNames", {})
        response: Dict[str, Any] = {
            "Items": [
                self._project(self.items[k], kwargs.get("ProjectionExpression"), names)
                for k in page
            ],
        }
        if limit and len(keys) > limit:
            response["LastEvaluatedKey"] = self._key_attributes(self.items[page[-1]])
        return response

    # client API

    async def get_item(self, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(("get_item", kwargs))
        self._check_table(kwargs["TableName"])
        item = self.items.get(self._key_of(kwargs["Key"]))
        if item is None:
            return {}
        names = kwargs.get("ExpressionAttributeNames", {})
        return {"Item": self._project(item, kwargs.get("ProjectionExpression"), names)}

    async def put_item(self, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(("put_item", kwargs))
        self._check_table(kwargs["TableName"])
        item = copy.deepcopy(kwargs["Item"])
        self.items[self._key_of(item)] = item
        return {}

    async def delete_item(self, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(("delete_item", kwargs))
        self._check_table(kwargs["TableName"])
        self.items.pop(self._key_of(kwargs["Key"]), None)
        return {}

    async def update_item(self, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(("update_item", kwargs))
        self._check_table(kwargs["TableName"])
        key = kwargs["Key"]
        item = self.items.setdefault(self._key_of(key), copy.deepcopy(key))
        expression = kwargs["UpdateExpression"]
        assert expression.upper().startswith("SET ")
        for assignment in expression[4:].split(","):
            name, value = (part.strip() for part in assignment.split("="))
            item[kwargs["ExpressionAttributeNames"][name]] = copy.deepcopy(
                kwargs["ExpressionAttributeValues"][value]
            )
        return {}

    async def batch_get_item(self, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(("batch_get_item", kwargs))
        responses: Dict[str, List[Dict[str, Any]]] = {}
        for table, request in kwargs["RequestItems"].items():
            self._check_table(table)
            if len(request["Keys"]) > 100:
                raise ValueError("Too many items requested for the BatchGetItem call")
            found = [self.items.get(self._key_of(key)) for key in request["Keys"]]
            responses[table] = [copy.deepcopy(item) for item in found if item is not None]
        return {"Responses": responses, "UnprocessedKeys": {}}

    async def batch_write_item(self, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(("batch_write_item", kwargs))
        for table, requests in kwargs["RequestItems"].items():
            self._check_table(table)
            if len(requests) > 25:
                raise ValueError("Too many items requested for the BatchWriteItem call")
            for request in requests:
                if "PutRequest" in request:
                    item = copy.deepcopy(request["PutRequest"]["Item"])
                    self.items[self._key_of(item)] = item
                else:
                    self.items.pop(self._key_of(request["DeleteRequest"]["Key"]), None)
        return {"UnprocessedItems": {}}

    async def scan(self, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(("scan", kwargs))
        self._check_table(kwargs["TableName"])
        return self._page(list(self.items), kwargs)

    async def query(self, **kwargs: Any) -> Dict[str, Any]:
        self.calls.append(("query", kwargs))
        self._check_table(kwargs["TableName"])
        values = kwargs["ExpressionAttributeValues"]
        partition, prefix = values[":pk"]["S"], values.get(":sk", {"S": ""})["S"]
        keys = [
            k for k in self.items
            if k[0] == partition and (k[1] or "").startswith(prefix)
        ]
        return self._page(keys, kwargs)

    def count(self, method: str) -> int:
        return sum(1 for name, _ in self.calls if name == method)


@pytest.fixture
def schema() -> KeySchema:
    return KeySchema(partition="Id", sort="Name", expires="ExpiresAt")


@pytest.fixture
def config(schema: KeySchema) -> StoreConfig:
    return StoreConfig(
        table=TABLE,
        keys=schema,
        ttl=300000,
        meta=lambda value: {"CreatedAt": 1701732465},
        retry=RetryPolicy(base_delay=0, max_delay=0),
    )


@pytest.fixture
def fake_client(schema: KeySchema) -> FakeDynamoDBClient:
    return FakeDynamoDBClient(TABLE, schema)


@pytest.fixture
def store(config: StoreConfig, fake_client: FakeDynamoDBClient) -> DynamoDBStore:
    return DynamoDBStore(config, fake_client)

"""
Cache stores for dynamo-cache.
"""
from ..types import Store
from .dynamodb import DynamoDBStore, create

__all__ = ["Store", "DynamoDBStore", "create"]

"""
Key listing through paginated scan and query requests.

DynamoDB only supports ``begins_with`` on the sort key, so a pattern such as
``"baz+foo_ba*"`` can be queried while ``"*foo_bar*"`` cannot.
"""
import logging
from typing import Any, List, Optional

from .builders import build_query_keys_input, build_scan_keys_input
from .config import StoreConfig
from .keys import encode_key, validate_pattern
from .types import Item

logger: logging.Logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


async def list_keys(client: Any, config: StoreConfig, pattern: Optional[str] = None) -> List[str]:
    """
    Collect every cache key of the table, or those matching ``pattern``.

    Expired items still present in the table are listed too.

    Raises:
        InvalidPatternError: before any request when the pattern is malformed
    """
    validate_pattern(pattern, config.keys)

    keys: List[str] = []
    cursor: Optional[Item] = None
    pages = 0
    while True:
        if pattern:
            response = await client.query(**build_query_keys_input(pattern, cursor, config))
        else:
            response = await client.scan(**build_scan_keys_input(cursor, config))
        pages += 1
        keys.extend(encode_key(item, config.keys) for item in response.get("Items", []))
        cursor = response.get("LastEvaluatedKey")
        if not cursor:
            break

    logger.debug("Listed %d key(s) from %s in %d page(s)", len(keys), config.table, pages)
    return keys

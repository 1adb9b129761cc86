"""
Expiration timestamps.

DynamoDB deletes expired items on its own schedule, which can lag well behind
the expiry time, so reads check the timestamp themselves.
"""
import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping, Optional

from .types import Milliseconds


def now_ms() -> Milliseconds:
    """Current unix time in milliseconds."""
    return int(time.time() * 1000)


def ms_to_s(ms: float) -> int:
    """Milliseconds to seconds, rounding halves up."""
    return int((Decimal(ms) / 1000).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def compute_expires_at(ttl: Milliseconds, now: Milliseconds) -> int:
    """Unix seconds at which an entry written at ``now`` with ``ttl`` expires."""
    return ms_to_s(now + ttl)


def expires_at(record: Optional[Mapping[str, Any]], attribute: str) -> Optional[int]:
    """Read the expiration attribute of a raw item, None when missing."""
    if not record or attribute not in record:
        return None
    return int(Decimal(record[attribute]["N"]))


def is_expired(record: Mapping[str, Any], attribute: str, now: Milliseconds) -> bool:
    """Whether the item is past its expiration. Items without one never expire."""
    expires = expires_at(record, attribute)
    return expires is not None and expires * 1000 < now


def remaining_ttl(
    record: Optional[Mapping[str, Any]], attribute: str, now: Milliseconds
) -> Milliseconds:
    """Milliseconds left before the item expires, -1 when there is no item."""
    expires = expires_at(record, attribute)
    if expires is None:
        return -1
    return expires * 1000 - now

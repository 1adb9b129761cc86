"""
dynamo-cache exceptions.

Errors raised by the client itself (``botocore.exceptions.ClientError``,
``BotoCoreError`` and network errors) are not wrapped: they reach the caller
unchanged.
"""
from typing import Any, Mapping, Optional


class CacheError(Exception):
    """Base class for errors raised by dynamo-cache."""


class MalformedKeyError(CacheError, ValueError):
    """A cache key cannot be mapped to the table key schema."""

    def __init__(self, key: Any, reason: str = "unsupported cache key") -> None:
        super().__init__(f"{reason}: {key!r}")
        self.key = key


class InvalidPatternError(CacheError, ValueError):
    """A key pattern is not of the form ``"<partition>+<prefix>*"``."""

    def __init__(self, pattern: Any) -> None:
        super().__init__(
            f'Bad key pattern provided: {pattern!r}. Possible value "bar+fo*"'
        )
        self.pattern = pattern


class UnprocessedDataError(CacheError):
    """A batch still had unprocessed items once the retry budget ran out."""

    def __init__(self, unprocessed: Optional[Mapping[str, Any]], attempts: int) -> None:
        count = _count_unprocessed(unprocessed)
        super().__init__(f"{count} item(s) left unprocessed after {attempts} attempt(s)")
        self.unprocessed = unprocessed or {}
        self.attempts = attempts


def _count_unprocessed(unprocessed: Optional[Mapping[str, Any]]) -> int:
    count = 0
    for requests in (unprocessed or {}).values():
        # batch_get_item remainders are {"Keys": [...]}, batch_write_item ones are lists
        if isinstance(requests, Mapping):
            requests = requests.get("Keys", [])
        count += len(requests)
    return count

"""
Batch execution against DynamoDB's per-request item limits.

Batch requests are split into chunks of at most 100 keys (``batch_get_item``)
or 25 requests (``batch_write_item``). Chunks run concurrently. A chunk whose
response carries ``UnprocessedKeys`` / ``UnprocessedItems`` is re-sent with
just that remainder, backing off exponentially, until nothing is left or the
retry policy gives up. Errors raised by the client are never retried.
"""
import asyncio
import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    TypeVar,
)

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from .builders import Batch, Fresh, Remainder, Request
from .config import RetryPolicy
from .exceptions import UnprocessedDataError
from .types import Item

logger: logging.Logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

MAX_BATCH_GET_ITEMS = 100
MAX_BATCH_WRITE_ITEMS = 25

T = TypeVar("T")

Send = Callable[..., Awaitable[Dict[str, Any]]]
BuildRequest = Callable[[Batch], Request]


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Yield consecutive slices of at most ``size`` items."""
    if size < 1:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def _log_unprocessed(policy: RetryPolicy) -> Callable[[RetryCallState], None]:
    def _log_retry(retry_state: RetryCallState) -> None:
        remainder = retry_state.outcome.result() if retry_state.outcome else None
        logger.warning(
            "Batch attempt %d/%d left unprocessed items for %s, backing off %.2fs",
            retry_state.attempt_number,
            policy.max_attempts,
            ", ".join(remainder or ()),
            retry_state.next_action.sleep if retry_state.next_action else 0.0,
        )

    return _log_retry


def _retrying(policy: RetryPolicy) -> AsyncRetrying:
    return AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_exponential(multiplier=policy.base_delay, max=policy.max_delay),
        retry=retry_if_result(policy.should_retry),
        before_sleep=_log_unprocessed(policy),
    )


async def run_chunk(
    send: Send,
    build: BuildRequest,
    request: Request,
    unprocessed_field: str,
    policy: RetryPolicy,
    on_response: Optional[Callable[[Dict[str, Any]], None]] = None,
) -> None:
    """
    Send one chunk until DynamoDB reports nothing left to process.

    Args:
        send: Bound client method, e.g. ``client.batch_write_item``
        build: Turns a ``Remainder`` into the method's keyword arguments
        request: Keyword arguments of the first attempt
        unprocessed_field: Response field holding the remainder
        policy: Retry policy
        on_response: Called with every successful response

    Raises:
        UnprocessedDataError: if the policy stops while items remain
    """
    remainder: Optional[Mapping[str, Any]] = None
    try:
        async for attempt in _retrying(policy):
            with attempt:
                response = await send(**request)
                if on_response is not None:
                    on_response(response)
                remainder = response.get(unprocessed_field) or None
                if remainder:
                    request = build(Remainder(remainder))
            if not attempt.retry_state.outcome.failed:  # type: ignore[union-attr]
                attempt.retry_state.set_result(remainder)
    except RetryError as exc:
        logger.error(
            "Giving up on batch after %d attempts, items still unprocessed",
            policy.max_attempts,
        )
        raise UnprocessedDataError(remainder, policy.max_attempts) from exc


async def run_chunks(
    send: Send,
    build: BuildRequest,
    items: Sequence[Any],
    chunk_size: int,
    unprocessed_field: str,
    policy: RetryPolicy,
    on_response: Optional[Callable[[Dict[str, Any]], None]] = None,
) -> None:
    """
    Split ``items`` into chunks and run them concurrently. The first failure wins.

    All requests are built before anything is sent, so a bad key fails the
    whole operation without I/O.
    """
    requests = [build(Fresh(chunk)) for chunk in chunked(items, chunk_size)]
    logger.debug("Running %d item(s) as %d chunk(s)", len(items), len(requests))
    await asyncio.gather(
        *(
            run_chunk(send, build, request, unprocessed_field, policy, on_response)
            for request in requests
        )
    )


async def batch_get(
    client: Any,
    keys: Sequence[str],
    build: BuildRequest,
    table: str,
    encode: Callable[[Item], str],
    policy: RetryPolicy,
) -> Dict[str, Item]:
    """
    Fetch ``keys`` through ``batch_get_item``.

    Returns:
        Raw items found in any attempt of any chunk, by cache key. Responses
        are matched on the item key, never on position.
    """
    found: Dict[str, Item] = {}

    def collect(response: Dict[str, Any]) -> None:
        for item in response.get("Responses", {}).get(table, []):
            found[encode(item)] = item

    await run_chunks(
        client.batch_get_item,
        build,
        keys,
        MAX_BATCH_GET_ITEMS,
        "UnprocessedKeys",
        policy,
        on_response=collect,
    )
    return found


async def batch_write(
    client: Any,
    items: Sequence[Any],
    build: BuildRequest,
    policy: RetryPolicy,
) -> None:
    """Apply put or delete requests through ``batch_write_item``."""
    await run_chunks(
        client.batch_write_item,
        build,
        items,
        MAX_BATCH_WRITE_ITEMS,
        "UnprocessedItems",
        policy,
    )

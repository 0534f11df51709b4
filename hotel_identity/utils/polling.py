"""
Poll-with-timeout for long-running upstream jobs (e.g. Apify actor runs).

Bounded attempts at a fixed interval, cancellable between attempts.
"""
import asyncio
import math
from typing import Awaitable, Callable, Optional, TypeVar

import structlog

from ..scrapers.base.errors import PollTimeoutError

logger = structlog.get_logger(__name__)

T = TypeVar('T')


class PollCancelled(Exception):
    """Raised when the cancel event is set while polling"""


async def poll_until(
    fetch: Callable[[], Awaitable[T]],
    is_done: Callable[[T], bool],
    interval: float,
    timeout: float,
    cancel_event: Optional[asyncio.Event] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """
    Call ``fetch`` until ``is_done`` accepts its result.

    Args:
        fetch: Coroutine function returning the current state
        is_done: Predicate deciding whether polling can stop
        interval: Seconds between attempts
        timeout: Total seconds allowed; sets the attempt bound
        cancel_event: Optional event that aborts polling when set

    Returns:
        The first accepted value

    Raises:
        PollTimeoutError: No accepted value within the attempt bound
        PollCancelled: cancel_event was set
    """
    if interval <= 0:
        raise ValueError("interval must be positive")

    max_attempts = max(1, math.ceil(timeout / interval))
    for attempt in range(1, max_attempts + 1):
        if cancel_event is not None and cancel_event.is_set():
            raise PollCancelled(f"Polling cancelled after {attempt - 1} attempts")

        value = await fetch()
        if is_done(value):
            return value

        logger.debug("poll_pending", attempt=attempt, max_attempts=max_attempts)
        if attempt < max_attempts:
            await sleep(interval)

    raise PollTimeoutError(f"Polling timeout after {max_attempts} attempts ({timeout:.0f}s)")

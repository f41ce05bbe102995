"""Backoff utilities.

Provides an async generator for exponential backoff strategies.
`exponential_backoff` yields the current delay for the caller to attempt an operation,
then sleeps for that same delay before the next attempt; the delay grows by
`multiplier` after each sleep, capped at `max_delay`. Nothing is slept after the last
bounded attempt. A `max_attempts` of zero or less keeps yielding until the
caller stops iterating, which is how the broker link retries forever by default.
"""
import asyncio
import itertools
from typing import AsyncIterator, Iterable


async def exponential_backoff(
    initial_delay: float,
    max_delay: float,
    multiplier: float,
    max_attempts: int,
) -> AsyncIterator[float]:
    unbounded = max_attempts <= 0
    attempts: Iterable[int] = itertools.count(1) if unbounded else range(1, max_attempts + 1)
    delay = initial_delay
    for attempt in attempts:
        yield delay
        if unbounded or attempt < max_attempts:
            await asyncio.sleep(delay)
            delay = min(delay * multiplier, max_delay)

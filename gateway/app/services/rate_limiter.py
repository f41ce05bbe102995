"""
Fixed-window request counter keyed by client identity.

Policy (strict cap): a request is admitted only while the window's count is below
`max_requests`; a rejected request does not increment the count. At most
`max_requests` requests are admitted per identity per window. A window expires once
`now - window_start > window_ms`, and the next request starts a fresh one.

check_limit() has no await points, so under the single event loop its
read-modify-write is never interleaved with another request's.
"""
from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class RateLimitEntry:
    count: int
    window_start: float


class FixedWindowRateLimiter:
    """RateLimiter implementation.

    `max_identities` caps how many identities are tracked; beyond it the least
    recently seen identity is evicted. 0 keeps every identity.
    """

    def __init__(
        self,
        window_ms: int,
        max_requests: int,
        *,
        max_identities: int = 0,
        clock: Callable[[], float] = _monotonic_ms,
    ) -> None:
        if window_ms <= 0:
            raise ValueError("window_ms must be a positive integer")
        if max_requests <= 0:
            raise ValueError("max_requests must be a positive integer")
        if max_identities < 0:
            raise ValueError("max_identities must be zero or positive")
        self._window_ms = window_ms
        self._max_requests = max_requests
        self._max_identities = max_identities
        self._clock = clock
        self._entries: OrderedDict[str, RateLimitEntry] = OrderedDict()

    @property
    def window_ms(self) -> int:
        return self._window_ms

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def __len__(self) -> int:
        return len(self._entries)

    def entry(self, identity: str) -> RateLimitEntry | None:
        return self._entries.get(identity)

    def check_limit(self, identity: str) -> bool:
        now = self._clock()
        entry = self._entries.get(identity)
        if entry is None or now - entry.window_start > self._window_ms:
            entry = RateLimitEntry(count=0, window_start=now)

        limited = entry.count >= self._max_requests
        if not limited:
            entry.count += 1

        self._store(identity, entry)
        return limited

    def _store(self, identity: str, entry: RateLimitEntry) -> None:
        self._entries[identity] = entry
        self._entries.move_to_end(identity)
        if self._max_identities:
            while len(self._entries) > self._max_identities:
                self._entries.popitem(last=False)

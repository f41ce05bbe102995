"""Port: per-identity admission check."""
from __future__ import annotations

from typing import Protocol


class RateLimiter(Protocol):
    def check_limit(self, identity: str) -> bool:
        """Return True when `identity` is over its limit and the request must be rejected."""
        ...

"""Port: topic publish contract used by the HTTP layer."""
from __future__ import annotations

from typing import Protocol


class MessagePublisher(Protocol):
    """Interface for publishing text messages onto the configured topic."""

    @property
    def topic(self) -> str: ...

    @property
    def connected(self) -> bool: ...

    async def publish(self, message: str) -> None: ...

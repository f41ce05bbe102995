"""Port: outbound broker connection and its lifecycle notifications. Implementations live in infrastructure."""
from __future__ import annotations

from typing import Protocol


class ConnectionListener(Protocol):
    """Receives connection lifecycle notifications from a BrokerLink."""

    async def on_connect(self) -> None: ...

    def on_reconnect_attempt(self, attempt: int) -> None: ...

    def on_error(self, error: BaseException) -> None: ...

    def on_close(self) -> None: ...


class BrokerLink(Protocol):
    """Owns one broker connection, including its retry/backoff policy."""

    @property
    def ready(self) -> bool: ...

    def set_listener(self, listener: ConnectionListener) -> None: ...

    async def start(self) -> None:
        """Begin connecting in the background; returns without waiting for the broker."""
        ...

    async def publish(self, topic: str, body: str) -> None: ...

    async def close(self) -> None:
        """Tear down the connection, then notify the listener with on_close."""
        ...

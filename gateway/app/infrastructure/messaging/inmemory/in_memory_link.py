"""In-memory broker link for tests and local mode.
Connects immediately on start() and records every publish in `.messages`.
"""
from __future__ import annotations

from gateway.app.ports.broker_link import ConnectionListener


class InMemoryLink:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []
        self._listener: ConnectionListener | None = None
        self._ready = False

    @property
    def ready(self) -> bool:
        return self._ready

    def set_listener(self, listener: ConnectionListener) -> None:
        self._listener = listener

    async def start(self) -> None:
        self._ready = True
        if self._listener is not None:
            await self._listener.on_connect()

    async def publish(self, topic: str, body: str) -> None:
        if not self._ready:
            raise RuntimeError("link_not_ready")
        self.messages.append((topic, body))

    async def close(self) -> None:
        self._ready = False
        if self._listener is not None:
            self._listener.on_close()

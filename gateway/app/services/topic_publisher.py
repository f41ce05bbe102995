"""
Connection-aware publisher for a single fixed topic.

Lifecycle (driven by the BrokerLink through the ConnectionListener callbacks):
  disconnected -> on_connect -> connected (pending flushed FIFO) -> on_close -> disconnected ...

publish() never waits on the broker: it appends to `pending` and, when connected,
makes sure the flush task is running. One flush task at a time sends `pending`
head-first while connected, so arrival order is the send order. A message leaves
`pending` only after its send attempt; if the link drops mid-flush the remainder
stays queued, in order, for the next connect.

Concurrency:
  publish(), on_close() and the flush task's bookkeeping have no await points
  between reading and writing state, so under the single event loop they never
  interleave mid-operation. Only the broker write itself is awaited.
"""
from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass
from typing import Any

from loguru import logger

from gateway.app.core import SERVICE_NAME
from gateway.app.ports.broker_link import BrokerLink


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def _warn(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).warning("")


@dataclass(frozen=True)
class PendingMessage:
    topic: str
    body: str


class ConnectionAwarePublisher:
    """MessagePublisher and ConnectionListener implementation."""

    def __init__(self, topic: str, link: BrokerLink) -> None:
        if not topic:
            raise ValueError("topic must be a non-empty string")
        self._topic = topic
        self._link = link
        self._connected = False
        self._pending: deque[PendingMessage] = deque()
        self._flush_task: asyncio.Task[None] | None = None

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def pending(self) -> tuple[PendingMessage, ...]:
        return tuple(self._pending)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def publish(self, message: str) -> None:
        """Queue `message` for the topic and return. Never waits on the broker, never raises."""
        self._pending.append(PendingMessage(self._topic, message))
        if self._connected:
            self._ensure_flushing()
        else:
            _log("publish_buffered", topic=self._topic, pending=len(self._pending))

    async def drain(self) -> None:
        """Wait for the running flush, if any, to finish."""
        task = self._flush_task
        if task is not None and not task.done():
            await task

    async def on_connect(self) -> None:
        self._connected = True
        _log("broker_connected", topic=self._topic, pending=len(self._pending))
        self._ensure_flushing()
        await self.drain()

    def on_close(self) -> None:
        self._connected = False
        _log("broker_closed", topic=self._topic, pending=len(self._pending))

    def on_reconnect_attempt(self, attempt: int) -> None:
        _log("broker_reconnecting", attempt=attempt)

    def on_error(self, error: BaseException) -> None:
        _warn("broker_error", error=str(error))

    async def close(self) -> None:
        task, self._flush_task = self._flush_task, None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    def _ensure_flushing(self) -> None:
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = asyncio.get_running_loop().create_task(self._flush())

    async def _flush(self) -> None:
        flushed = 0
        while self._pending and self._connected:
            head = self._pending[0]
            if not await self._send(head) and not self._connected:
                break
            self._pending.popleft()
            flushed += 1
        if flushed:
            _log("pending_flushed", topic=self._topic, flushed=flushed, remaining=len(self._pending))

    async def _send(self, pending: PendingMessage) -> bool:
        # Fire-and-forget: a failure while the link still reports connected is not retried.
        try:
            await self._link.publish(pending.topic, pending.body)
        except Exception as e:
            _warn("publish_failed", topic=pending.topic, reason=str(e) or type(e).__name__)
            return False
        return True

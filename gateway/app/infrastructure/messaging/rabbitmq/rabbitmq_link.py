"""
RabbitMQ broker link: connection lifecycle, topic exchange declaration, fire-and-forget publish.

Lifecycle:
  DISCONNECTED -> CONNECTING (backoff) -> CONNECTED -> CHANNEL_OPEN ->
  EXCHANGE_DECLARED -> READY (listener.on_connect).
  On broker disconnect or publish error: READY -> RECONNECTING (listener.on_close, backoff)
  -> CONNECTED -> ... -> READY (listener.on_connect).
  On shutdown: any -> CLOSING -> cancel connect loop, close channel/connection -> CLOSED
  (listener.on_close).

Listener notifications:
  on_reconnect_attempt for every attempt after the first connection attempt,
  on_error for every failed attempt, on_close when a READY connection is lost and
  once more after close().

Concurrency:
  - The connection close callback may run from another thread; we schedule the
    connect loop on the event loop via call_soon_threadsafe(create_task(...)).
  - A connection that drops while the listener is still handling on_connect is
    picked up by the running loop once the listener returns.
  - Connections are detached before we close them ourselves, so our own teardown
    never reads as a broker disconnect.
"""
from __future__ import annotations

import asyncio
import time
from typing import Any

import aio_pika
from aio_pika import DeliveryMode, ExchangeType, Message
from loguru import logger

from gateway.app.config.settings import Settings
from gateway.app.core import SERVICE_NAME
from gateway.app.core.backoff import exponential_backoff
from gateway.app.infrastructure.messaging.rabbitmq.constants import LinkState
from gateway.app.ports.broker_link import ConnectionListener


def _log(event: str, **kwargs: Any) -> None:
    """
    Structured log. bind() attaches key-value context (event, service_name, attempt, ...) to the
    log record for filtering in aggregators; .info("") because the payload is in the bound kwargs.
    """
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class RabbitMQLink:
    """BrokerLink implementation publishing to a durable topic exchange."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._state = LinkState.DISCONNECTED
        self._connection: aio_pika.abc.AbstractConnection | None = None
        self._channel: aio_pika.abc.AbstractChannel | None = None
        self._exchange: aio_pika.abc.AbstractExchange | None = None
        self._listener: ConnectionListener | None = None
        self._lock = asyncio.Lock()
        self._connect_task: asyncio.Task[None] | None = None
        self._closing = False
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def state(self) -> LinkState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state == LinkState.READY

    def _set_state(self, state: LinkState) -> None:
        self._state = state

    def set_listener(self, listener: ConnectionListener) -> None:
        self._listener = listener

    async def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._connect_task = asyncio.create_task(self._run(reconnecting=False))

    def _register_close_callback(self, connection: aio_pika.abc.AbstractConnection) -> None:
        callbacks = getattr(connection, "close_callbacks", None)
        if callbacks is not None:
            callbacks.add(self._on_connection_closed)

    def _on_connection_closed(self, *args: Any, **kwargs: Any) -> None:
        if self._connection is None:
            return
        self._mark_lost()

    def _mark_lost(self) -> None:
        if self._closing or self._state != LinkState.READY:
            return
        self._set_state(LinkState.RECONNECTING)
        self._channel = None
        self._exchange = None
        _log("broker_disconnect_detected")
        if self._listener is not None:
            self._listener.on_close()
        if (self._connect_task is None or self._connect_task.done()) and self._loop:
            def schedule() -> None:
                if self._closing:
                    return
                if self._connect_task is None or self._connect_task.done():
                    self._connect_task = asyncio.create_task(self._run(reconnecting=True))
            self._loop.call_soon_threadsafe(schedule)

    async def _run(self, *, reconnecting: bool) -> None:
        while not self._closing:
            if not await self._connect_with_backoff(reconnecting=reconnecting):
                return
            if self._listener is not None:
                await self._listener.on_connect()
            if self._state == LinkState.READY or self._closing:
                return
            reconnecting = True

    async def _connect_with_backoff(self, *, reconnecting: bool) -> bool:
        self._set_state(LinkState.RECONNECTING if reconnecting else LinkState.CONNECTING)
        attempt = 0
        waited = 0.0
        async for delay in exponential_backoff(
            self._settings.initial_backoff_seconds,
            self._settings.max_backoff_seconds,
            self._settings.backoff_multiplier,
            self._settings.max_connection_attempts,
        ):
            if self._closing:
                return False
            attempt += 1
            _log("rmq_reconnect_attempt" if reconnecting else "rmq_connect_attempt", attempt=attempt, delay=waited)
            if (reconnecting or attempt > 1) and self._listener is not None:
                self._listener.on_reconnect_attempt(attempt)
            try:
                await self._close_channel_and_connection()
                self._connection = await aio_pika.connect(
                    self._settings.broker_url,
                    timeout=self._settings.connection_timeout_seconds,
                )
                if self._loop is None:
                    self._loop = asyncio.get_running_loop()
                self._register_close_callback(self._connection)
                self._set_state(LinkState.CONNECTED)
                await self._open_channel_and_declare()
            except Exception as e:
                logger.warning("rmq connect failed: {}", e)
                await self._close_channel_and_connection()
                if self._listener is not None:
                    self._listener.on_error(e)
                waited = delay
                continue
            _log("rmq_reconnected" if reconnecting else "rmq_connected", attempt=attempt)
            return True
        _log("rmq_connect_exhausted", max_attempts=self._settings.max_connection_attempts)
        self._set_state(LinkState.DISCONNECTED)
        return False

    async def _open_channel_and_declare(self) -> None:
        if not self._connection:
            raise RuntimeError("connection_lost")
        self._set_state(LinkState.CHANNEL_OPEN)
        self._channel = await self._connection.channel(publisher_confirms=False)
        self._exchange = await self._channel.declare_exchange(
            self._settings.broker_exchange,
            ExchangeType.TOPIC,
            durable=True,
        )
        self._set_state(LinkState.EXCHANGE_DECLARED)
        self._set_state(LinkState.READY)

    async def _close_channel_and_connection(self) -> None:
        channel, self._channel = self._channel, None
        connection, self._connection = self._connection, None
        self._exchange = None
        if channel:
            try:
                await channel.close()
            except Exception as e:
                logger.warning("channel close failed (continuing to close connection): {}", e)
        if connection:
            try:
                await connection.close()
            except Exception as e:
                logger.warning("connection close failed: {}", e)

    async def publish(self, topic: str, body: str) -> None:
        if self._state != LinkState.READY:
            _log("publish_rejected", reason="link_not_ready", topic=topic)
            raise RuntimeError("link_not_ready")
        start = time.perf_counter()
        async with self._lock:
            exchange = self._exchange
            if exchange is None:
                _log("publish_failed", reason="connection_lost", topic=topic)
                raise RuntimeError("connection_lost")
            message = Message(
                body.encode("utf-8"),
                content_type="text/plain",
                delivery_mode=DeliveryMode.NOT_PERSISTENT,
            )
            try:
                await exchange.publish(
                    message,
                    routing_key=topic,
                    timeout=self._settings.publish_timeout_seconds,
                )
            except Exception:
                _log("publish_failed", reason="connection_lost", topic=topic)
                self._mark_lost()
                raise
        latency_ms = (time.perf_counter() - start) * 1000
        _log("publish_success", topic=topic, latency_ms=round(latency_ms, 2))

    async def close(self) -> None:
        self._closing = True
        self._set_state(LinkState.CLOSING)
        _log("link_shutdown")
        if self._connect_task is not None and not self._connect_task.done():
            self._connect_task.cancel()
            try:
                await self._connect_task
            except asyncio.CancelledError:
                pass
        async with self._lock:
            await self._close_channel_and_connection()
        self._set_state(LinkState.CLOSED)
        if self._listener is not None:
            self._listener.on_close()

from __future__ import annotations

import pytest
from fastapi import FastAPI

from gateway.app.routers.health import health_router
from gateway.app.routers.notify import notify_router
from gateway.app.services.rate_limiter import FixedWindowRateLimiter
from gateway.app.services.topic_publisher import ConnectionAwarePublisher

TOPIC = "m5/notify"


class FakeLink:
    """Implements BrokerLink for tests; records every outbound publish in order."""

    def __init__(self, *, raise_on_publish: Exception | None = None) -> None:
        self.sent: list[tuple[str, str]] = []
        self.listener = None
        self.started = False
        self.closed = False
        self._raise_on_publish = raise_on_publish
        self.on_publish = None

    @property
    def ready(self) -> bool:
        return self.started and not self.closed

    def set_listener(self, listener) -> None:
        self.listener = listener

    async def start(self) -> None:
        self.started = True

    async def publish(self, topic: str, body: str) -> None:
        if self.on_publish is not None:
            self.on_publish(topic, body)
        if self._raise_on_publish is not None:
            raise self._raise_on_publish
        self.sent.append((topic, body))

    async def close(self) -> None:
        self.closed = True


class FakePublisher:
    """Implements MessagePublisher for router tests; records every accepted message in order."""

    def __init__(self, topic: str = TOPIC, *, connected: bool = True) -> None:
        self.topic = topic
        self.connected = connected
        self.published: list[str] = []

    async def publish(self, message: str) -> None:
        self.published.append(message)


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def link() -> FakeLink:
    return FakeLink()


@pytest.fixture()
def publisher(link: FakeLink) -> ConnectionAwarePublisher:
    pub = ConnectionAwarePublisher(TOPIC, link)
    link.set_listener(pub)
    return pub


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def fake_publisher() -> FakePublisher:
    return FakePublisher()


@pytest.fixture()
def test_app(fake_publisher: FakePublisher, clock: FakeClock) -> FastAPI:
    app = FastAPI()
    app.state.publisher = fake_publisher
    app.state.rate_limiter = FixedWindowRateLimiter(1000, 3, clock=clock)
    app.include_router(health_router)
    app.include_router(notify_router)
    return app

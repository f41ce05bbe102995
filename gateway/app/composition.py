"""
Composition root: single place where concrete implementations are wired.

Builds settings, broker link, publisher, and rate limiter from config; provides
start/close lifecycle. Used by lifespan to populate app.state, which is the one
context object request handlers read. No DI container library; explicit wiring
only. Link backend selection (e.g. link_backend=inmemory) is driven by settings.
"""

from gateway.app.config.settings import Settings
from gateway.app.infrastructure.messaging.factory import create_broker_link
from gateway.app.ports.broker_link import BrokerLink
from gateway.app.services.rate_limiter import FixedWindowRateLimiter
from gateway.app.services.topic_publisher import ConnectionAwarePublisher


class AppDependencies:
    """Holds wired dependencies and their lifecycle. Built only in composition root."""

    def __init__(
        self,
        *,
        settings: Settings,
        link: BrokerLink,
        publisher: ConnectionAwarePublisher,
        rate_limiter: FixedWindowRateLimiter,
    ) -> None:
        self._settings = settings
        self._link = link
        self._publisher = publisher
        self._rate_limiter = rate_limiter
        self._started = False

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def link(self) -> BrokerLink:
        return self._link

    @property
    def publisher(self) -> ConnectionAwarePublisher:
        return self._publisher

    @property
    def rate_limiter(self) -> FixedWindowRateLimiter:
        return self._rate_limiter

    async def start(self) -> None:
        # Broker outages are not fatal: the link keeps retrying while the publisher buffers.
        await self._link.start()
        self._started = True

    async def close(self) -> None:
        if self._started:
            await self._link.close()
            await self._publisher.close()
            self._started = False


def create_app_dependencies(settings: Settings | None = None) -> AppDependencies:
    """
    Composition root: build all app dependencies in one place.
    Caller owns lifecycle (start/close). The link backend is selected from
    settings (link_backend); the publisher listens to the link's lifecycle.
    """
    _settings = settings or Settings()
    link = create_broker_link(_settings)
    publisher = ConnectionAwarePublisher(_settings.broker_topic, link)
    link.set_listener(publisher)
    rate_limiter = FixedWindowRateLimiter(
        _settings.rate_limit_window_ms,
        _settings.rate_limit_max_requests,
        max_identities=_settings.rate_limit_max_identities,
    )

    return AppDependencies(
        settings=_settings,
        link=link,
        publisher=publisher,
        rate_limiter=rate_limiter,
    )

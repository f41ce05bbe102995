"""
Accepts plain Python types plus the publisher and rate limiter abstractions; returns an outcome.
Router translates outcome to HTTP status codes and content.
"""

from dataclasses import dataclass

from gateway.app.ports.message_publisher import MessagePublisher
from gateway.app.ports.rate_limiter import RateLimiter


@dataclass(frozen=True)
class NotifyOutcome:
    """Result of notify.
    accepted=True => message was sent or buffered for the next connect.
    accepted=False => identity is over its rate limit; nothing was published.
    """
    accepted: bool
    topic: str
    message: str


async def notify(
    message: str,
    identity: str,
    *,
    publisher: MessagePublisher,
    rate_limiter: RateLimiter,
) -> NotifyOutcome:
    if rate_limiter.check_limit(identity):
        return NotifyOutcome(accepted=False, topic=publisher.topic, message=message)

    await publisher.publish(message)
    return NotifyOutcome(accepted=True, topic=publisher.topic, message=message)

"""Broker link factory: selects implementation from config. Only place that imports concrete links."""
from __future__ import annotations

from gateway.app.config.settings import Settings
from gateway.app.ports.broker_link import BrokerLink
from gateway.app.infrastructure.messaging.rabbitmq.rabbitmq_link import RabbitMQLink
from gateway.app.infrastructure.messaging.inmemory.in_memory_link import InMemoryLink


def create_broker_link(settings: Settings) -> BrokerLink:
    backend = settings.link_backend.strip().lower()

    if backend == "rabbitmq":
        return RabbitMQLink(settings)

    if backend == "inmemory":
        return InMemoryLink()

    raise ValueError(f"Unsupported link backend: {backend}")

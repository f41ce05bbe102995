from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request, Response
from loguru import logger

from gateway.app.constants import DEFAULT_MESSAGE
from gateway.app.core import SERVICE_NAME
from gateway.app.routers.utils import client_identity
from gateway.app.schemas.notify import NotifyErrorResponse, NotifyResponse
from gateway.app.services.notify import notify


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).warning("")


notify_router = APIRouter(tags=["Notify"])


@notify_router.get(
    "/notify",
    summary="Publish a message to the broker topic",
    description="Publishes `message` to the configured topic. While the broker is unreachable the message is buffered in memory and sent, in order, once the connection is back. Requests are capped per client within a fixed time window.",
    responses={
        200: {"description": "Message sent or buffered for the next broker connection."},
        429: {"description": "Client exceeded its request allowance for the current window."},
        503: {"description": "Publisher not initialized."},
    },
)
async def get_notify(request: Request, message: str | None = None) -> Response:
    publisher = getattr(request.app.state, "publisher", None)
    rate_limiter = getattr(request.app.state, "rate_limiter", None)
    if publisher is None or rate_limiter is None:
        _log("notify_rejected", reason="components_not_initialized")
        return Response(status_code=503, content="Publisher not available")

    identity = client_identity(request)
    outcome = await notify(
        message or DEFAULT_MESSAGE,
        identity,
        publisher=publisher,
        rate_limiter=rate_limiter,
    )

    if not outcome.accepted:
        _log("rate_limited", identity=identity)
        return Response(
            status_code=429,
            media_type="application/json",
            content=NotifyErrorResponse().model_dump_json(),
        )

    return Response(
        status_code=200,
        media_type="application/json",
        content=NotifyResponse(topic=outcome.topic, message=outcome.message).model_dump_json(),
    )

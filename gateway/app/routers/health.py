from typing import Any

from fastapi import APIRouter, Request, Response
from fastapi.responses import PlainTextResponse
from loguru import logger

from gateway.app.core import SERVICE_NAME

health_router = APIRouter(tags=["Health"])


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


@health_router.get(
    "/healthz",
    summary="Platform health check",
    description="Plain-text liveness check for hosting platforms.",
    response_class=PlainTextResponse,
    responses={200: {"description": "Service is running."}},
)
async def healthz() -> str:
    return "ok"


@health_router.get(
    "/health/live",
    summary="Liveness check",
    description="Returns 200 if the gateway process is running.",
    responses={200: {"description": "Service is alive."}},
)
async def live() -> dict:
    return {"status": "ok"}


@health_router.get(
    "/health/ready",
    summary="Readiness check",
    description="Returns 200 only while the publisher holds a live broker connection. Requests are still accepted (and buffered) when this returns 503.",
    responses={
        200: {"description": "Broker connection is up."},
        503: {"description": "Publisher missing or broker disconnected."},
    },
)
async def ready(request: Request) -> Response:
    publisher = getattr(request.app.state, "publisher", None)
    if publisher is None:
        _log("components_not_initialized")
        return Response(status_code=503, content="Not ready")
    if not publisher.connected:
        _log("publisher_not_connected")
        return Response(status_code=503, content="Broker not connected")
    return Response(status_code=200, content="OK")

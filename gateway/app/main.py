"""
FastAPI application entry point: HTTP-triggered broker topic publisher.
"""
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from loguru import logger
from pydantic import ValidationError

from gateway.app.composition import create_app_dependencies
from gateway.app.config.settings import Settings
from gateway.app.core import SERVICE_NAME
from gateway.app.core.logging import configure_logging
from gateway.app.routers.health import health_router
from gateway.app.routers.notify import notify_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.bind(service_name=SERVICE_NAME, event="gateway_starting").info("")
    dependencies = create_app_dependencies(getattr(app.state, "settings", None))
    configure_logging(dependencies.settings.log_level, serialize=dependencies.settings.log_json)
    await dependencies.start()

    app.state.settings = dependencies.settings
    app.state.publisher = dependencies.publisher
    app.state.rate_limiter = dependencies.rate_limiter
    try:
        yield
    finally:
        logger.bind(service_name=SERVICE_NAME, event="gateway_stopping").info("")
        await dependencies.close()


def create_app(settings: Settings | None = None) -> FastAPI:
    app = FastAPI(
        title="Notify Gateway",
        description="Publishes HTTP-submitted messages onto a broker topic.",
        version="0.1.0",
        lifespan=lifespan,
    )
    if settings is not None:
        app.state.settings = settings
    app.include_router(health_router)
    app.include_router(notify_router)
    return app


app = create_app()


def main() -> None:
    try:
        settings = Settings()
    except ValidationError as e:
        logger.bind(service_name=SERVICE_NAME, event="config_invalid").error("{}", e)
        raise SystemExit(1) from e
    configure_logging(settings.log_level, serialize=settings.log_json)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()

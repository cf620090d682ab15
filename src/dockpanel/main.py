"""dockpanel FastAPI application."""

import logging
from contextlib import asynccontextmanager
from typing import Callable

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from dockpanel import __version__
from dockpanel.api.dependencies import close_services, init_services
from dockpanel.api.v1 import (
    containers_router,
    health_router,
    images_router,
    network_router,
    projects_router,
)
from dockpanel.config import get_config
from dockpanel.core.errors import PanelError
from dockpanel.infra import close_docker
from dockpanel.logging import setup_logging
from dockpanel.logging_schema import LogEvent

# Import metrics to ensure they are registered
import dockpanel.metrics  # noqa: F401

_config = get_config()
setup_logging(_config.logging)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(
        "Starting dockpanel",
        extra={
            "event": LogEvent.APP_STARTED,
            "version": __version__,
        },
    )

    # Starts the registry poller
    await init_services()

    yield
    logger.info("Shutting down dockpanel", extra={"event": LogEvent.APP_STOPPED})
    await close_services()
    await close_docker()


app = FastAPI(
    title="dockpanel",
    description="Container lifecycle service for the control panel",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_config.server.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PanelError)
async def panel_error_handler(request: Request, exc: PanelError) -> JSONResponse:
    """Handle PanelError exceptions."""
    logger.warning(
        "Panel error",
        extra={
            "event": LogEvent.PANEL_ERROR,
            "error_code": exc.code.value,
            "error_message": exc.message,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions with logging."""
    logger.exception(
        "Unhandled exception",
        extra={
            "event": LogEvent.UNHANDLED_EXCEPTION,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


@app.middleware("http")
async def api_key_middleware(
    request: Request, call_next: Callable[[Request], Response]
) -> Response:
    """Validate API key for non-health endpoints."""
    config = get_config()

    if request.url.path in ("/health", "/metrics"):
        return await call_next(request)

    if config.server.api_key:
        auth_header = request.headers.get("Authorization", "")
        expected = f"Bearer {config.server.api_key}"
        if auth_header != expected:
            return Response(
                content='{"detail": "Invalid API key"}',
                status_code=401,
                media_type="application/json",
            )

    return await call_next(request)


app.include_router(health_router)


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose Prometheus metrics."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


app.include_router(projects_router, prefix="/api/v1")
app.include_router(containers_router, prefix="/api/v1")
app.include_router(images_router, prefix="/api/v1")
app.include_router(network_router, prefix="/api/v1")


def main() -> None:
    """Run the panel server."""
    config = get_config()
    uvicorn.run(
        "dockpanel.main:app",
        host=config.server.host,
        port=config.server.port,
        reload=False,
    )


if __name__ == "__main__":
    main()

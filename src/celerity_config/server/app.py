"""FastAPI application wired with ConfigLayer."""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request

from ..container import Container
from ..layer import ConfigLayer
from .routes import router

logger = logging.getLogger("celerity_config.server")


@dataclass
class RequestContext:
    """Per-request context handed to ConfigLayer."""
    request: Request
    container: Container


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting celerity-config service")
    yield
    logger.info("Shutting down celerity-config service")
    await app.state.container.close_all()


def create_app(layer: Optional[ConfigLayer] = None, container: Optional[Container] = None) -> FastAPI:
    """Create FastAPI application.

    Args:
        layer: Config layer. If None, one reading os.environ is created.
        container: App-scoped container the layer registers into.

    Returns:
        Configured FastAPI application.
    """
    layer = layer or ConfigLayer()
    container = container or Container()

    app = FastAPI(
        title="Celerity Config",
        description="Config namespaces resolved from environment and remote stores",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.container = container
    app.state.config_layer = layer

    @app.middleware("http")
    async def config_layer_middleware(request: Request, call_next):
        context = RequestContext(request=request, container=request.app.state.container)
        return await layer.handle(context, lambda: call_next(request))

    app.include_router(router)

    @app.get("/")
    async def root():
        return {
            "service": "celerity-config",
            "version": "0.1.0",
            "docs": "/docs",
        }

    return app


def run_server(
    host: str = "127.0.0.1",
    port: int = 18800,
    log_level: str = "info",
):
    """Run the HTTP server.

    Args:
        host: Host to bind to.
        port: Port to bind to.
        log_level: Logging level.
    """
    app = create_app()

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=log_level,
    )

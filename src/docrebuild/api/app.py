"""FastAPI application setup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from docrebuild import __version__
from docrebuild.api.dependencies import close_engine, init_engine
from docrebuild.api.models import APIResponse
from docrebuild.api.routes import cache, rebuild, webhooks
from docrebuild.config import find_config, load_config
from docrebuild.engine import create_engine
from docrebuild.exceptions import CacheStoreError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    # Startup
    config_path = app.state.config_path
    if config_path is None:
        config_path = find_config()
    config = load_config(config_path)
    init_engine(create_engine(config))
    logger.info("Webhook receiver ready, config %s", config_path)

    yield
    # Shutdown
    close_engine()


def create_app(config_path: str | Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        config_path: Path to docrebuild.yaml; auto-detected at startup if None.
    """
    app = FastAPI(
        title="docrebuild API",
        description="Webhook receiver and rebuild decisions for a documentation site",
        version=__version__,
        lifespan=lifespan,
    )

    # Store config for lifespan manager
    app.state.config_path = Path(config_path) if config_path is not None else None

    # Exception handlers
    @app.exception_handler(CacheStoreError)
    async def cache_store_error_handler(_request: Request, _exc: CacheStoreError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=APIResponse[None](data=None, error="Cache could not be written").model_dump(),
        )

    # Include routers
    app.include_router(webhooks.router, prefix="/api/v1")
    app.include_router(rebuild.router, prefix="/api/v1")
    app.include_router(cache.router, prefix="/api/v1")

    return app

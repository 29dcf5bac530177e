# Copyright (c) 2026 Heureum AI. All rights reserved.

"""
Context Engine - FastAPI service for prompt layering and context compaction
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from context_engine.config import settings
from context_engine.routers import context
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Apply ``LOG_LEVEL`` to the root logger."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Args:
        app (FastAPI): The FastAPI application instance.

    Yields:
        None: Control is yielded to the application between startup
            and shutdown.
    """
    configure_logging()
    logger.info("Starting %s...", settings.APP_NAME)
    yield
    logger.info("Shutting down %s...", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    description="Prompt layering and context compaction service",
    version="0.1.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(context.router, prefix="/api/v1/context", tags=["context"])


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status (str): Current service health status.
        version (str): Application version string.
    """

    status: str
    version: str


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Health check endpoint.

    Returns:
        HealthResponse: Current service status and version.
    """
    return HealthResponse(status="healthy", version="0.1.0")


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint.

    Returns:
        dict[str, str]: A mapping containing a welcome message and links
            to documentation and health endpoints.
    """
    return {
        "message": "Context Engine Service",
        "docs": "/docs",
        "health": "/health",
    }

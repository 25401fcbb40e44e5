"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance and manages the
lifespan of the Activation Service client and the in-memory flow registry.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from faculty_activation.adapters.http.activation_service import HttpActivationService
from faculty_activation.api.registry import FlowRegistry
from faculty_activation.api.v1 import router as v1_router
from faculty_activation.config.settings import get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Faculty account activation - token, OTP and password steps",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates the Activation Service client and flow registry on startup
    - Disposes every open flow and closes the client on shutdown
    """
    settings = get_settings()

    logger.info("Starting application...")
    logger.info("Activation Service at %s", settings.activation_api_base_url)

    app.state.activation_service = HttpActivationService.from_settings(settings)
    app.state.flows = FlowRegistry(max_flows=settings.max_flows)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    app.state.flows.close_all()
    await app.state.activation_service.aclose()
    logger.info("Activation Service client closed")


app = FastAPI(
    title="faculty-activation",
    description="Faculty Activation Flow - Validate token, verify OTP and set password",
    version="0.1.0",
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

# Include v1 API routes
app.include_router(v1_router, prefix="/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}

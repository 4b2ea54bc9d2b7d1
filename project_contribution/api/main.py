"""
FastAPI application for the Project Contribution service.

This module initializes and configures the FastAPI application that serves
the project contribution endpoint.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from project_contribution.api.endpoints import contribution
from project_contribution.config.settings import settings
from project_contribution.core.admission import AdmissionController
from project_contribution.core.errors import (
    ContributionError,
    PartialSubmissionError,
    RateLimitError,
)
from project_contribution.models.dtos import ErrorResponse
from project_contribution.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Configures logging and runs the rate-limit sweeper as a background task
    so expired client buckets do not accumulate.
    """
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    if not settings.github_token():
        logger.warning("No GitHub token configured - contributions will be rejected with 500")

    controller: AdmissionController = app.state.admission_controller
    sweeper_task = asyncio.create_task(
        controller.sweep_periodically(settings.RATE_LIMIT_SWEEP_INTERVAL_SECONDS)
    )

    yield

    # Shutdown
    logger.info("Shutting down application")
    sweeper_task.cancel()
    try:
        await sweeper_task
    except asyncio.CancelledError:
        logger.info("Rate-limit sweeper task cancelled successfully")


async def contribution_error_handler(request: Request, exc: ContributionError) -> JSONResponse:
    """Translate contribution errors into ``{"error": ...}`` responses."""
    if isinstance(exc, PartialSubmissionError):
        body = ErrorResponse.for_partial_record(exc.message, exc.record)
    else:
        body = ErrorResponse(error=exc.message)

    headers = None
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after_seconds)}

    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
        headers=headers,
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""Project contribution API.

        Accepts new project listings and edits of existing ones, reconciles
        edits with the current upstream YAML and opens pull requests for the
        project YAML file and its logo.""",
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,  # Disable docs in production
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_tags=[
            {
                "name": "labels",
                "description": "Project contribution operations"
            },
            {
                "name": "health",
                "description": "Health check and monitoring"
            }
        ]
    )

    # Process-wide rate-limit state, shared by all requests
    app.state.admission_controller = AdmissionController(
        max_requests=settings.RATE_LIMIT_MAX_REQUESTS,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS if not settings.DEBUG else ["*"],
        allow_methods=settings.CORS_ALLOW_METHODS,
        allow_headers=settings.CORS_ALLOW_HEADERS,
    )

    app.add_exception_handler(ContributionError, contribution_error_handler)

    # Include API routers
    app.include_router(
        contribution.router,
        prefix="/api/labels",
        tags=["labels"]
    )

    # Health check endpoint
    @app.get("/health", tags=["health"], summary="Health Check", description="Get application health status")
    async def health_check():
        """
        Health check endpoint.

        Returns:
            dict: Service status, version, timestamp, whether a GitHub
                credential is configured and the number of tracked clients
        """
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "github_token_configured": bool(settings.github_token()),
            "rate_limited_clients": app.state.admission_controller.client_count,
        }

    return app


# Create the application instance
app = create_app()

"""
FastAPI application with assembled routers.

Initializes the FastAPI app, its application-wide state (broadcaster
registry and review runner) and the uvicorn server entry point.

Dependencies: fastapi, uvicorn, prd_reviewer.api.routers
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prd_reviewer import __version__
from prd_reviewer.application.services.review_runner import ReviewRunner
from prd_reviewer.boundary.agent_engine.engine_client import ClaudeReviewEngine
from prd_reviewer.boundary.db.connection import get_async_session_factory
from prd_reviewer.boundary.db.create_tables import create_all_tables
from prd_reviewer.boundary.storage.file_store import ReviewFileStore
from prd_reviewer.configs import Settings, get_settings
from prd_reviewer.core.progress.broadcaster import BroadcasterRegistry
from prd_reviewer.observability.logger import configure_logging
from prd_reviewer.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import health_router, review_stream_router, reviews_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Configures logging, prepares storage directories and creates tables.
    """
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)
    logger = logging.getLogger("uvicorn")

    app.state.review_runner.file_store.ensure_dirs()
    await create_all_tables()
    logger.info("PRD reviewer ready", extra={"data_dir": str(settings.storage.data_dir)})

    yield

    logger.info("PRD reviewer shutting down", extra={"active_reviews": len(app.state.broadcaster_registry)})


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Args:
        settings: Settings to use; defaults to the cached environment settings

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="PRD Reviewer API",
        description="Multi-agent technical review of product requirements documents",
        version=__version__,
        lifespan=lifespan,
    )

    registry = BroadcasterRegistry(max_listeners=settings.streaming.max_listeners)
    app.state.settings = settings
    app.state.broadcaster_registry = registry
    app.state.review_runner = ReviewRunner(
        registry=registry,
        session_factory=get_async_session_factory(),
        engine=ClaudeReviewEngine(settings.agents),
        file_store=ReviewFileStore(settings.storage.data_dir),
        settings=settings.streaming,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(reviews_router, prefix="/api/v1")
    app.include_router(review_stream_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "prd_reviewer.api.main:app",
        host="0.0.0.0",
        port=8000,
        timeout_keep_alive=75,
    )

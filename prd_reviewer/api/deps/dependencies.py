"""
Dependency injection container.

Factory functions for FastAPI dependencies. Application-wide objects (the
broadcaster registry and the review runner) live on app.state and are
created by create_app; everything else is built per request.

Dependencies: prd_reviewer.configs, prd_reviewer.application, prd_reviewer.boundary
System role: DI container for service injection
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from prd_reviewer.application.services.review_runner import ReviewRunner
from prd_reviewer.application.services.review_service import ReviewService
from prd_reviewer.boundary.db import get_async_db
from prd_reviewer.boundary.storage.file_store import ReviewFileStore
from prd_reviewer.configs import Settings, get_settings
from prd_reviewer.configs.streaming import StreamingSettings
from prd_reviewer.core.progress.broadcaster import BroadcasterRegistry


def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_streaming_settings(settings: Settings = Depends(get_settings_dependency)) -> StreamingSettings:
    return settings.streaming


def get_file_store(settings: Settings = Depends(get_settings_dependency)) -> ReviewFileStore:
    return ReviewFileStore(settings.storage.data_dir)


def get_broadcaster_registry(request: Request) -> BroadcasterRegistry:
    """Registry owned by the application."""
    return request.app.state.broadcaster_registry


def get_review_runner(request: Request) -> ReviewRunner:
    """Runner owned by the application."""
    return request.app.state.review_runner


def get_review_service(
    db: AsyncSession = Depends(get_async_db),
    file_store: ReviewFileStore = Depends(get_file_store),
) -> ReviewService:
    """
    Get review service instance.

    Args:
        db: Async database session (injected via Depends)
        file_store: Upload and output storage

    Returns:
        ReviewService: Service bound to the request's session
    """
    return ReviewService(db=db, file_store=file_store)

"""API-specific dependencies."""

from .dependencies import (
    get_broadcaster_registry,
    get_file_store,
    get_review_runner,
    get_review_service,
    get_settings_dependency,
    get_streaming_settings,
)

__all__ = [
    "get_broadcaster_registry",
    "get_file_store",
    "get_review_runner",
    "get_review_service",
    "get_settings_dependency",
    "get_streaming_settings",
]

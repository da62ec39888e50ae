"""API routers."""

from .health import router as health_router
from .review_stream import router as review_stream_router
from .reviews import router as reviews_router

__all__ = [
    "health_router",
    "review_stream_router",
    "reviews_router",
]

"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Dependencies: sqlalchemy, prd_reviewer.configs
System role: Database adapter for review metadata
"""

from prd_reviewer.boundary.db.base import Base, TimestampMixin, UUIDMixin
from prd_reviewer.boundary.db.connection import (
    create_session_factory,
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from prd_reviewer.boundary.db.CRUD import BaseCRUD, ReviewCRUD, review_crud
from prd_reviewer.boundary.db.models import ReviewModel, ReviewStatus

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "create_session_factory",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    "BaseCRUD",
    "ReviewCRUD",
    "review_crud",
    "ReviewModel",
    "ReviewStatus",
]

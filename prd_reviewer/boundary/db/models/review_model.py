"""
Review ORM model.

One row per submitted PRD review. The row is created on submission and
afterwards only mutated by the review runner, or reset by an explicit re-run.

Dependencies: sqlalchemy, prd_reviewer.boundary.db.base
System role: Persistent review metadata
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from prd_reviewer.boundary.db.base import Base, TimestampMixin, UUIDMixin
from prd_reviewer.models.review import ReviewStatus


class ReviewModel(Base, UUIDMixin, TimestampMixin):
    """
    Review ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        file_name: Sanitised PRD file name as stored on disk
        original_name: PRD file name as uploaded
        repo_paths: Repository paths the agents may explore
        status: Current execution state
        completed_at: When the run finished successfully
        error: Failure message of the last run
        usage: SessionUsage JSON of the last successful run
        supplementary_files: SupplementarySource JSON list
        additional_context: Free-form reviewer notes
        web_search_enabled: Whether a web researcher joins the run
    """

    __tablename__ = "reviews"

    file_name: Mapped[str] = mapped_column(String(512), nullable=False)
    original_name: Mapped[str] = mapped_column(String(512), nullable=False)
    repo_paths: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    status: Mapped[ReviewStatus] = mapped_column(
        Enum(ReviewStatus, native_enum=False),
        nullable=False,
        default=ReviewStatus.PENDING,
    )

    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    usage: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    supplementary_files: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    additional_context: Mapped[str | None] = mapped_column(Text, nullable=True)
    web_search_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

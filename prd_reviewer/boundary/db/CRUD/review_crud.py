"""
Review CRUD operations.

Extends BaseCRUD with review listing and status transitions.

Dependencies: sqlalchemy, prd_reviewer.boundary.db.models.review_model
System role: Review persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from prd_reviewer.boundary.db.base import utc_now
from prd_reviewer.boundary.db.CRUD.base_crud import BaseCRUD
from prd_reviewer.boundary.db.models.review_model import ReviewModel, ReviewStatus


class ReviewCRUD(BaseCRUD[ReviewModel]):
    """CRUD operations for ReviewModel."""

    def __init__(self) -> None:
        super().__init__(ReviewModel)

    async def list_newest_first(
        self,
        session: AsyncSession,
        limit: int | None = None,
    ) -> Sequence[ReviewModel]:
        stmt = select(ReviewModel).order_by(ReviewModel.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def update_status(
        self,
        session: AsyncSession,
        id: UUID,
        status: ReviewStatus,
        error: str | None = None,
    ) -> ReviewModel | None:
        """
        Move a review to a new status.

        Terminal statuses stamp completed_at; ERROR also stores the message.

        Args:
            session: Async database session
            id: Review UUID
            status: New status
            error: Failure message for ERROR

        Returns:
            Updated ReviewModel if found, None otherwise
        """
        update_fields: dict = {"status": status}
        if status == ReviewStatus.COMPLETED:
            update_fields["completed_at"] = utc_now()
            update_fields["error"] = None
        elif status == ReviewStatus.ERROR:
            update_fields["completed_at"] = utc_now()
            update_fields["error"] = error
        return await self.update_by_id(session, id, **update_fields)

    async def save_usage(
        self,
        session: AsyncSession,
        id: UUID,
        usage: dict,
    ) -> ReviewModel | None:
        return await self.update_by_id(session, id, usage=usage)

    async def reset_for_rerun(self, session: AsyncSession, id: UUID) -> ReviewModel | None:
        """Back to PENDING with the previous outcome cleared."""
        return await self.update_by_id(
            session,
            id,
            status=ReviewStatus.PENDING,
            error=None,
            completed_at=None,
        )


review_crud = ReviewCRUD()

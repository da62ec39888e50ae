"""
Review service.

Narrow persistence interface for reviews: row lifecycle through ReviewCRUD,
uploaded documents and outputs through ReviewFileStore. Callers own the
transaction and commit.

Dependencies: prd_reviewer.boundary.db, prd_reviewer.boundary.storage
System role: Review management orchestration
"""

import logging
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from prd_reviewer.boundary.db.CRUD.review_crud import review_crud
from prd_reviewer.boundary.db.models.review_model import ReviewModel, ReviewStatus
from prd_reviewer.boundary.storage.file_store import ReviewFileStore
from prd_reviewer.core.exceptions import ReviewConflictError, ReviewNotFoundError
from prd_reviewer.models.review import (
    ReviewDetailResponse,
    ReviewResponse,
    ReviewStatusResponse,
    SupplementaryContent,
    SupplementarySource,
)
from prd_reviewer.models.usage import SessionUsage

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Review service orchestrator.

    Wraps ReviewCRUD and ReviewFileStore for the review lifecycle.
    """

    def __init__(self, db: AsyncSession, file_store: ReviewFileStore) -> None:
        """
        Initialize review service.

        Args:
            db: AsyncSession for database operations
            file_store: Storage for uploads and outputs
        """
        self.db = db
        self.file_store = file_store

    async def create(
        self,
        original_name: str,
        file_name: str,
        repo_paths: list[str],
        supplementary_files: list[SupplementarySource] | None = None,
        additional_context: str | None = None,
        web_search_enabled: bool = False,
    ) -> ReviewModel:
        """
        Create a pending review row.

        Args:
            original_name: PRD file name as uploaded
            file_name: Sanitised file name used on disk
            repo_paths: Repositories to review against
            supplementary_files: Supplementary source metadata
            additional_context: Free-form reviewer notes
            web_search_enabled: Whether a web researcher joins the run

        Returns:
            ReviewModel: Created review
        """
        review = await review_crud.create(
            self.db,
            original_name=original_name,
            file_name=file_name,
            repo_paths=list(repo_paths),
            status=ReviewStatus.PENDING,
            supplementary_files=[source.model_dump() for source in supplementary_files or []],
            additional_context=additional_context,
            web_search_enabled=web_search_enabled,
        )
        logger.info("Review created", extra={"review_id": str(review.id)})
        return review

    async def get(self, review_id: UUID) -> ReviewModel:
        """
        Fetch a review.

        Raises:
            ReviewNotFoundError: If no review has this ID
        """
        review = await review_crud.get_by_id(self.db, review_id)
        if review is None:
            raise ReviewNotFoundError(str(review_id))
        return review

    async def list_reviews(self) -> Sequence[ReviewModel]:
        return await review_crud.list_newest_first(self.db)

    async def get_detail(self, review_id: UUID) -> ReviewDetailResponse:
        """
        Review with stored document text and generated output.

        Binary uploads (PDF, DOCX) have no prd_content; supplementary sources
        that are not UTF-8 text are left out.

        Raises:
            ReviewNotFoundError: If no review has this ID
        """
        review = await self.get(review_id)
        meta = ReviewResponse.model_validate(review)
        key = str(review.id)

        supplementary_contents: list[SupplementaryContent] = []
        for index, source in enumerate(meta.supplementary_files):
            content = self.file_store.read_text(
                self.file_store.supplementary_path(key, index, source.file_name)
            )
            if content is not None:
                supplementary_contents.append(
                    SupplementaryContent(name=source.original_name, label=source.label, content=content)
                )

        return ReviewDetailResponse(
            **meta.model_dump(),
            prd_content=self.file_store.read_text(self.file_store.upload_path(key, review.file_name)),
            review_output=self.file_store.read_output(key),
            supplementary_contents=supplementary_contents or None,
        )

    async def status(self, review_id: UUID) -> ReviewStatusResponse:
        review = await self.get(review_id)
        return ReviewStatusResponse(id=review.id, status=review.status, error=review.error)

    async def mark_running(self, review_id: UUID) -> None:
        await review_crud.update_status(self.db, review_id, ReviewStatus.RUNNING)

    async def mark_completed(self, review_id: UUID) -> None:
        await review_crud.update_status(self.db, review_id, ReviewStatus.COMPLETED)

    async def mark_error(self, review_id: UUID, message: str) -> None:
        await review_crud.update_status(self.db, review_id, ReviewStatus.ERROR, error=message)

    async def save_usage(self, review_id: UUID, usage: SessionUsage) -> None:
        await review_crud.save_usage(self.db, review_id, usage.model_dump(mode="json"))

    def save_output(self, review_id: UUID, markdown: str) -> None:
        self.file_store.save_output(str(review_id), markdown)

    async def rerun(self, review_id: UUID) -> ReviewModel:
        """
        Reset a review so it can run again.

        Raises:
            ReviewNotFoundError: If no review has this ID
            ReviewConflictError: If the review is currently running
        """
        review = await self.get(review_id)
        if review.status == ReviewStatus.RUNNING:
            raise ReviewConflictError(str(review_id), ReviewStatus.RUNNING.value)

        updated = await review_crud.reset_for_rerun(self.db, review_id)
        logger.info("Review reset for re-run", extra={"review_id": str(review_id)})
        return updated

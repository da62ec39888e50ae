"""
Test suite for ReviewCRUD database operations.

Runs against a real SQLite database through aiosqlite.

System role: Verification of review persistence layer
"""

import asyncio

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from prd_reviewer.boundary.db.CRUD.review_crud import ReviewCRUD
from prd_reviewer.boundary.db.models.review_model import ReviewModel, ReviewStatus


@pytest.fixture
def review_crud() -> ReviewCRUD:
    """Provide ReviewCRUD instance for testing."""
    return ReviewCRUD()


async def create_review(crud: ReviewCRUD, session: AsyncSession, **overrides) -> ReviewModel:
    fields = {
        "file_name": "prd.md",
        "original_name": "prd.md",
        "repo_paths": ["/srv/shop"],
        "status": ReviewStatus.PENDING,
    }
    fields.update(overrides)
    return await crud.create(session, **fields)


class TestReviewCRUDCreate:
    """Test suite for ReviewCRUD.create()."""

    @pytest.mark.asyncio
    async def test_create_sets_defaults(self, review_crud, test_async_db) -> None:
        # Act
        review = await create_review(review_crud, test_async_db)

        # Assert
        assert review.id is not None
        assert review.status == ReviewStatus.PENDING
        assert review.supplementary_files == []
        assert review.web_search_enabled is False
        assert review.created_at is not None

    @pytest.mark.asyncio
    async def test_get_by_id_returns_none_when_missing(self, review_crud, test_async_db, review_id) -> None:
        assert await review_crud.get_by_id(test_async_db, review_id) is None


class TestReviewCRUDListing:
    """Test suite for ReviewCRUD.list_newest_first()."""

    @pytest.mark.asyncio
    async def test_newest_first(self, review_crud, test_async_db) -> None:
        # Arrange
        older = await create_review(review_crud, test_async_db, original_name="older.md")
        await asyncio.sleep(0.01)
        newer = await create_review(review_crud, test_async_db, original_name="newer.md")

        # Act
        reviews = await review_crud.list_newest_first(test_async_db)

        # Assert
        assert [r.id for r in reviews] == [newer.id, older.id]


class TestReviewCRUDStatus:
    """Test suite for status transitions."""

    @pytest.mark.asyncio
    async def test_completed_stamps_completed_at(self, review_crud, test_async_db) -> None:
        review = await create_review(review_crud, test_async_db)

        updated = await review_crud.update_status(test_async_db, review.id, ReviewStatus.COMPLETED)

        assert updated.status == ReviewStatus.COMPLETED
        assert updated.completed_at is not None
        assert updated.error is None

    @pytest.mark.asyncio
    async def test_error_stores_message(self, review_crud, test_async_db) -> None:
        review = await create_review(review_crud, test_async_db)

        updated = await review_crud.update_status(
            test_async_db, review.id, ReviewStatus.ERROR, error="Agent failed"
        )

        assert updated.status == ReviewStatus.ERROR
        assert updated.error == "Agent failed"
        assert updated.completed_at is not None

    @pytest.mark.asyncio
    async def test_update_missing_review_returns_none(self, review_crud, test_async_db, review_id) -> None:
        assert await review_crud.update_status(test_async_db, review_id, ReviewStatus.RUNNING) is None

    @pytest.mark.asyncio
    async def test_reset_for_rerun_clears_outcome(self, review_crud, test_async_db) -> None:
        # Arrange
        review = await create_review(review_crud, test_async_db)
        await review_crud.update_status(test_async_db, review.id, ReviewStatus.ERROR, error="boom")

        # Act
        reset = await review_crud.reset_for_rerun(test_async_db, review.id)

        # Assert
        assert reset.status == ReviewStatus.PENDING
        assert reset.error is None
        assert reset.completed_at is None

    @pytest.mark.asyncio
    async def test_save_usage_persists_json(self, review_crud, test_async_db) -> None:
        review = await create_review(review_crud, test_async_db)

        updated = await review_crud.save_usage(test_async_db, review.id, {"total_cost_usd": 0.5})

        assert updated.usage == {"total_cost_usd": 0.5}

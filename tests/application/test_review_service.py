"""
Test suite for ReviewService.

Uses a real SQLite session and a temporary file store.

System role: Verification of review lifecycle orchestration
"""

import pytest

from prd_reviewer.application.services.review_service import ReviewService
from prd_reviewer.core.exceptions import ReviewConflictError, ReviewNotFoundError
from prd_reviewer.models.review import ReviewStatus, SupplementarySource
from prd_reviewer.models.usage import SessionUsage, TokenUsage


@pytest.fixture
def review_service(test_async_db, file_store) -> ReviewService:
    return ReviewService(test_async_db, file_store)


@pytest.fixture
async def pending_review(review_service):
    return await review_service.create(
        original_name="Checkout PRD.md",
        file_name="Checkout_PRD.md",
        repo_paths=["/srv/shop"],
        supplementary_files=[
            SupplementarySource(file_name="notes.txt", original_name="notes.txt", label="Meeting Notes"),
            SupplementarySource(file_name="deck.pdf", original_name="deck.pdf"),
        ],
        additional_context="Focus on payments",
    )


class TestCreateAndGet:
    """Test suite for create() and get()."""

    @pytest.mark.asyncio
    async def test_create_stores_metadata(self, pending_review) -> None:
        assert pending_review.status == ReviewStatus.PENDING
        assert pending_review.supplementary_files[0]["label"] == "Meeting Notes"
        assert pending_review.additional_context == "Focus on payments"

    @pytest.mark.asyncio
    async def test_get_missing_raises(self, review_service, review_id) -> None:
        with pytest.raises(ReviewNotFoundError):
            await review_service.get(review_id)

    @pytest.mark.asyncio
    async def test_status(self, review_service, pending_review) -> None:
        status = await review_service.status(pending_review.id)

        assert status.id == pending_review.id
        assert status.status == ReviewStatus.PENDING
        assert status.error is None


class TestLifecycle:
    """Test suite for status transitions through the service."""

    @pytest.mark.asyncio
    async def test_mark_error_then_status(self, review_service, pending_review) -> None:
        await review_service.mark_running(pending_review.id)
        await review_service.mark_error(pending_review.id, "Agent failed")

        status = await review_service.status(pending_review.id)

        assert status.status == ReviewStatus.ERROR
        assert status.error == "Agent failed"

    @pytest.mark.asyncio
    async def test_mark_error_stamps_completed_at(self, review_service, pending_review) -> None:
        # Arrange
        await review_service.mark_running(pending_review.id)

        # Act
        await review_service.mark_error(pending_review.id, "Agent failed")
        review = await review_service.get(pending_review.id)

        # Assert
        assert review.status == ReviewStatus.ERROR
        assert review.completed_at is not None

    @pytest.mark.asyncio
    async def test_save_usage_and_complete(self, review_service, pending_review) -> None:
        # Arrange
        usage = SessionUsage(total_cost_usd=0.25, total_tokens=TokenUsage(input_tokens=10))

        # Act
        await review_service.save_usage(pending_review.id, usage)
        await review_service.mark_completed(pending_review.id)
        review = await review_service.get(pending_review.id)

        # Assert
        assert review.status == ReviewStatus.COMPLETED
        assert review.usage["total_cost_usd"] == 0.25
        assert review.completed_at is not None


class TestRerun:
    """Test suite for rerun()."""

    @pytest.mark.asyncio
    async def test_rerun_while_running_conflicts(self, review_service, pending_review) -> None:
        await review_service.mark_running(pending_review.id)

        with pytest.raises(ReviewConflictError, match="already running"):
            await review_service.rerun(pending_review.id)

    @pytest.mark.asyncio
    async def test_rerun_resets_errored_review(self, review_service, pending_review) -> None:
        # Arrange
        await review_service.mark_error(pending_review.id, "boom")

        # Act
        review = await review_service.rerun(pending_review.id)

        # Assert
        assert review.status == ReviewStatus.PENDING
        assert review.error is None
        assert review.completed_at is None

    @pytest.mark.asyncio
    async def test_rerun_missing_review(self, review_service, review_id) -> None:
        with pytest.raises(ReviewNotFoundError):
            await review_service.rerun(review_id)


class TestGetDetail:
    """Test suite for get_detail()."""

    @pytest.mark.asyncio
    async def test_detail_reads_documents_and_output(
        self, review_service, pending_review, file_store
    ) -> None:
        # Arrange
        key = str(pending_review.id)
        file_store.save_upload(file_store.upload_path(key, "Checkout_PRD.md"), b"# Checkout")
        file_store.save_upload(file_store.supplementary_path(key, 0, "notes.txt"), b"Use Stripe")
        file_store.save_upload(file_store.supplementary_path(key, 1, "deck.pdf"), b"%PDF\xff\xfe")
        review_service.save_output(pending_review.id, "# PRD Review")

        # Act
        detail = await review_service.get_detail(pending_review.id)

        # Assert
        assert detail.prd_content == "# Checkout"
        assert detail.review_output == "# PRD Review"
        assert len(detail.supplementary_contents) == 1
        assert detail.supplementary_contents[0].name == "notes.txt"
        assert detail.supplementary_contents[0].label == "Meeting Notes"

    @pytest.mark.asyncio
    async def test_detail_without_files(self, review_service, pending_review) -> None:
        detail = await review_service.get_detail(pending_review.id)

        assert detail.prd_content is None
        assert detail.review_output is None
        assert detail.supplementary_contents is None

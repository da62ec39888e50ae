"""
Background review runner.

Drives one review run end to end: registers the review's broadcaster,
extracts the uploaded documents, runs the review pipeline with every
ProgressEvent published to the broadcaster, and records the outcome.
Scheduled through FastAPI BackgroundTasks by the review routes.

Dependencies: prd_reviewer.core, prd_reviewer.application.services.review_service
System role: Job runner between the HTTP layer and the review pipeline
"""

import logging
import time
from typing import Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from prd_reviewer.application.services.review_service import ReviewService
from prd_reviewer.boundary.agent_engine.engine_client import ClaudeReviewEngine
from prd_reviewer.boundary.db.models.review_model import ReviewModel
from prd_reviewer.boundary.storage.file_store import ReviewFileStore
from prd_reviewer.configs.streaming import StreamingSettings
from prd_reviewer.core.agentic_system.review_agents.prompts import SourceDocument
from prd_reviewer.core.agentic_system.review_pipeline import ReviewInput, run_review
from prd_reviewer.core.document_processing.parsing_task import ParsingTask
from prd_reviewer.core.exceptions import EngineExecutionError, ParsingError
from prd_reviewer.core.progress.broadcaster import BroadcasterRegistry, EventBroadcaster
from prd_reviewer.models.progress_events import CompletionStatus, complete_event
from prd_reviewer.models.review import SupplementarySource
from prd_reviewer.observability.correlation import clear_correlation_id, set_correlation_id

logger = logging.getLogger(__name__)


def error_message(error: Exception) -> str:
    """User-facing message of an exception, without debugging details."""
    return getattr(error, "message", None) or str(error) or type(error).__name__


class ReviewRunner:
    """
    Executes review runs.

    One instance per application; each run opens its own database session
    since it outlives the request that scheduled it.
    """

    def __init__(
        self,
        registry: BroadcasterRegistry,
        session_factory: async_sessionmaker[AsyncSession],
        engine: ClaudeReviewEngine,
        file_store: ReviewFileStore,
        settings: StreamingSettings,
        parser: ParsingTask | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.registry = registry
        self.session_factory = session_factory
        self.engine = engine
        self.file_store = file_store
        self.settings = settings
        self.parser = parser or ParsingTask()
        self.clock = clock

    async def run(self, review_id: UUID) -> None:
        """
        Run a review to completion or failure.

        Never raises for run failures: they are logged, persisted as the
        review's error and announced on the progress stream.

        Args:
            review_id: Review to run
        """
        key = str(review_id)
        set_correlation_id(key)
        broadcaster = self.registry.create(key)

        try:
            async with self.session_factory() as db:
                service = ReviewService(db, self.file_store)
                try:
                    review = await service.get(review_id)
                    await service.mark_running(review_id)
                    await db.commit()
                    logger.info("Review running", extra={"review_id": key})

                    review_input = await self._load_input(review)
                    result = await run_review(
                        self.engine,
                        review_input,
                        broadcaster.publish,
                        activity_throttle_seconds=self.settings.activity_throttle_seconds,
                        usage_interval_seconds=self.settings.usage_emit_interval_seconds,
                        clock=self.clock,
                    )

                    service.save_output(review_id, result.output)
                    await service.save_usage(review_id, result.usage)
                    await service.mark_completed(review_id)
                    await db.commit()

                    logger.info(
                        "Review completed",
                        extra={
                            "review_id": key,
                            "cost_usd": round(result.usage.total_cost_usd, 4),
                            "duration_ms": result.usage.duration_ms,
                        },
                    )

                except Exception as e:
                    message = error_message(e)
                    logger.exception(
                        "Review failed",
                        extra={"review_id": key, "error": message, "error_type": type(e).__name__},
                    )
                    await db.rollback()
                    if not isinstance(e, EngineExecutionError):
                        self._announce_failure(broadcaster, message)
                    try:
                        await service.mark_error(review_id, message)
                        await db.commit()
                    except Exception as inner_e:
                        logger.exception(
                            "Failed to record review failure",
                            extra={"review_id": key, "inner_error": str(inner_e)},
                        )
        finally:
            self.registry.schedule_teardown(key, broadcaster, self.settings.teardown_delay_seconds)
            clear_correlation_id()

    async def _load_input(self, review: ReviewModel) -> ReviewInput:
        key = str(review.id)
        prd_content = await self.parser.aparse(self.file_store.upload_path(key, review.file_name))
        logger.info("Parsed PRD", extra={"review_id": key, "chars": len(prd_content)})

        sources: list[SourceDocument] = []
        for index, raw in enumerate(review.supplementary_files or []):
            source = SupplementarySource.model_validate(raw)
            path = self.file_store.supplementary_path(key, index, source.file_name)
            try:
                content = await self.parser.aparse(path)
            except ParsingError as e:
                logger.warning(
                    "Skipping supplementary source",
                    extra={"review_id": key, "source": source.original_name, "error": e.message},
                )
                continue
            sources.append(SourceDocument(name=source.original_name, label=source.label, content=content))
            logger.info(
                "Parsed supplementary source",
                extra={"review_id": key, "source": source.original_name, "chars": len(content)},
            )

        return ReviewInput(
            prd_content=prd_content,
            repo_paths=list(review.repo_paths),
            sources=sources,
            additional_context=review.additional_context,
            web_search_enabled=review.web_search_enabled,
        )

    def _announce_failure(self, broadcaster: EventBroadcaster, message: str) -> None:
        broadcaster.publish(complete_event(CompletionStatus.ERROR, message))

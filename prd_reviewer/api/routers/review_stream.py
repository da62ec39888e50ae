"""
Review progress streaming endpoint.

Routes: GET /reviews/{id}/stream

Server-Sent Events channel for a review's ProgressEvents. Finished reviews
get a single synthetic complete event. Pending reviews get a synthetic
"Waiting to start..." phase while the endpoint polls for the run's
broadcaster. Idle connections get a :keepalive comment so proxies keep
them open.

Dependencies: fastapi, prd_reviewer.core.progress.broadcaster
System role: SSE push channel for review progress
"""

import asyncio
import logging
import time
from typing import AsyncGenerator
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from prd_reviewer.api.deps import (
    get_broadcaster_registry,
    get_review_service,
    get_streaming_settings,
)
from prd_reviewer.application.services.review_service import ReviewService
from prd_reviewer.configs.streaming import StreamingSettings
from prd_reviewer.core.exceptions import ReviewNotFoundError
from prd_reviewer.core.progress.broadcaster import BroadcasterRegistry, EventBroadcaster
from prd_reviewer.models.progress_events import (
    CompletionStatus,
    ProgressEvent,
    ReviewPhase,
    complete_event,
    phase_event,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["streaming"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
KEEPALIVE_FRAME = ":keepalive\n\n"


async def _wait_for_broadcaster(
    review_id: str,
    registry: BroadcasterRegistry,
    settings: StreamingSettings,
    request: Request,
) -> AsyncGenerator[str | EventBroadcaster, None]:
    """Poll the registry, yielding keepalive frames, then the broadcaster if it appears."""
    started = time.monotonic()
    last_write = started
    while True:
        broadcaster = registry.get(review_id)
        if broadcaster is not None:
            yield broadcaster
            return

        now = time.monotonic()
        if now - started >= settings.attach_timeout_seconds:
            logger.info("Gave up waiting for review to start", extra={"review_id": review_id})
            return
        if await request.is_disconnected():
            return
        if now - last_write >= settings.keepalive_interval_seconds:
            last_write = now
            yield KEEPALIVE_FRAME
        await asyncio.sleep(settings.attach_poll_interval_seconds)


async def review_event_stream(
    review_id: str,
    registry: BroadcasterRegistry,
    settings: StreamingSettings,
    request: Request,
) -> AsyncGenerator[str, None]:
    """
    SSE frames for one connected client.

    Ends after forwarding a complete event, when the broadcaster closes, when
    the client disconnects, or when the review never starts within the
    attach timeout. The listener is removed on every exit path.
    """
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[ProgressEvent | None] = asyncio.Queue()

    def listener(event: ProgressEvent) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, event)

    def on_close() -> None:
        loop.call_soon_threadsafe(queue.put_nowait, None)

    broadcaster = registry.get(review_id)
    if broadcaster is None:
        yield phase_event(ReviewPhase.UNDERSTANDING, "Waiting to start...").to_sse()
        async for item in _wait_for_broadcaster(review_id, registry, settings, request):
            if isinstance(item, EventBroadcaster):
                broadcaster = item
            else:
                yield item
        if broadcaster is None:
            return

    broadcaster.add_listener(listener, on_close)
    logger.info(
        "Stream client attached",
        extra={"review_id": review_id, "listeners": broadcaster.listener_count},
    )
    try:
        if broadcaster.closed:
            return
        while True:
            try:
                event = await asyncio.wait_for(queue.get(), timeout=settings.keepalive_interval_seconds)
            except asyncio.TimeoutError:
                if await request.is_disconnected():
                    break
                yield KEEPALIVE_FRAME
                continue

            if event is None:
                break
            yield event.to_sse()
            if event.type == "complete":
                break
    finally:
        broadcaster.remove_listener(listener)
        logger.info("Stream client detached", extra={"review_id": review_id})


@router.get("/{review_id}/stream")
async def stream_review(
    review_id: UUID,
    request: Request,
    review_service: ReviewService = Depends(get_review_service),
    registry: BroadcasterRegistry = Depends(get_broadcaster_registry),
    settings: StreamingSettings = Depends(get_streaming_settings),
) -> StreamingResponse:
    """
    Stream review progress as Server-Sent Events.

    Frame format:
        data: {"type": "progress", "timestamp": "...", "data": {"percent": 43, ...}}

    Raises:
        HTTPException(404): Review not found
    """
    try:
        review = await review_service.get(review_id)
    except ReviewNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

    if review.status.is_terminal:
        status = CompletionStatus(review.status.value)
        event = complete_event(status, review.error if status == CompletionStatus.ERROR else None)
        return StreamingResponse(
            iter([event.to_sse()]),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    return StreamingResponse(
        review_event_stream(str(review_id), registry, settings, request),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )

"""
Test suite for the review progress SSE endpoint.

Finished reviews are checked through TestClient; live streams drive the
event generator directly with a stub request.

System role: Verification of the push channel
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from prd_reviewer.api.deps import get_review_service
from prd_reviewer.api.main import create_app
from prd_reviewer.api.routers.review_stream import KEEPALIVE_FRAME, review_event_stream
from prd_reviewer.core.exceptions import ReviewNotFoundError
from prd_reviewer.core.progress.broadcaster import BroadcasterRegistry
from prd_reviewer.models.progress_events import (
    CompletionStatus,
    ProgressEventData,
    ProgressPercentEvent,
    ReviewPhase,
    complete_event,
    phase_event,
)
from prd_reviewer.models.review import ReviewStatus


class StubRequest:
    """Request stand-in reporting a connected client until told otherwise."""

    def __init__(self) -> None:
        self.disconnected = False

    async def is_disconnected(self) -> bool:
        return self.disconnected


def frames(body: str) -> list[dict]:
    return [json.loads(chunk[len("data: "):]) for chunk in body.split("\n\n") if chunk.startswith("data: ")]


async def next_frame(stream) -> dict:
    """Next data frame, skipping keepalives."""
    while True:
        chunk = await stream.__anext__()
        if chunk != KEEPALIVE_FRAME:
            return frames(chunk)[0]


async def wait_for_listener(broadcaster, count: int = 1) -> None:
    for _ in range(200):
        if broadcaster.listener_count >= count:
            return
        await asyncio.sleep(0.005)
    raise AssertionError("stream never attached")


@pytest.fixture
def mock_review_service():
    return AsyncMock()


@pytest.fixture
def client(mock_review_service):
    app = create_app()
    app.dependency_overrides[get_review_service] = lambda: mock_review_service
    return TestClient(app)


class TestStreamEndpoint:
    """Test suite for GET /reviews/{id}/stream."""

    def test_unknown_review_is_404(self, client, mock_review_service, review_id) -> None:
        mock_review_service.get.side_effect = ReviewNotFoundError(str(review_id))

        response = client.get(f"/api/v1/reviews/{review_id}/stream")

        assert response.status_code == 404

    def test_completed_review_gets_one_synthetic_complete(
        self, client, mock_review_service, make_review_model
    ) -> None:
        # Arrange
        review = make_review_model(status=ReviewStatus.COMPLETED)
        mock_review_service.get.return_value = review

        # Act
        response = client.get(f"/api/v1/reviews/{review.id}/stream")

        # Assert
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        assert response.headers["x-accel-buffering"] == "no"
        events = frames(response.text)
        assert len(events) == 1
        assert events[0]["type"] == "complete"
        assert events[0]["data"] == {"status": "completed"}
        registry = client.app.state.broadcaster_registry
        assert len(registry) == 0
        assert registry.get(str(review.id)) is None

    def test_completed_review_does_not_subscribe_to_live_run(
        self, client, mock_review_service, make_review_model
    ) -> None:
        # Arrange
        review = make_review_model(status=ReviewStatus.COMPLETED)
        mock_review_service.get.return_value = review
        broadcaster = client.app.state.broadcaster_registry.create(str(review.id))

        # Act
        response = client.get(f"/api/v1/reviews/{review.id}/stream")

        # Assert
        assert len(frames(response.text)) == 1
        assert broadcaster.listener_count == 0

    def test_errored_review_carries_error_message(
        self, client, mock_review_service, make_review_model
    ) -> None:
        review = make_review_model(status=ReviewStatus.ERROR, error="Agent failed")
        mock_review_service.get.return_value = review

        response = client.get(f"/api/v1/reviews/{review.id}/stream")

        (event,) = frames(response.text)
        assert event["data"] == {"status": "error", "message": "Agent failed"}


class TestReviewEventStream:
    """Test suite for the live event generator."""

    @pytest.mark.asyncio
    async def test_forwards_events_until_complete(self, streaming_settings) -> None:
        # Arrange
        registry = BroadcasterRegistry()
        broadcaster = registry.create("r1")
        stream = review_event_stream("r1", registry, streaming_settings, StubRequest())
        first = asyncio.ensure_future(stream.__anext__())
        await wait_for_listener(broadcaster)

        # Act
        broadcaster.publish(phase_event(ReviewPhase.EXPLORING, "Exploring codebase (0/2 sections)..."))
        broadcaster.publish(ProgressPercentEvent(data=ProgressEventData(percent=10, message="Exploring")))
        broadcaster.publish(complete_event(CompletionStatus.COMPLETED))
        broadcaster.publish(phase_event(ReviewPhase.SYNTHESIZING, "after the end"))
        chunks = [await first] + [chunk async for chunk in stream]

        # Assert
        types = [frames(chunk)[0]["type"] for chunk in chunks if chunk != KEEPALIVE_FRAME]
        assert types == ["phase", "progress", "complete"]
        assert broadcaster.listener_count == 0

    @pytest.mark.asyncio
    async def test_sends_keepalive_when_idle(self, streaming_settings) -> None:
        registry = BroadcasterRegistry()
        broadcaster = registry.create("r1")
        stream = review_event_stream("r1", registry, streaming_settings, StubRequest())

        chunk = await stream.__anext__()

        assert chunk == KEEPALIVE_FRAME
        broadcaster.close()
        assert [c async for c in stream] == []
        assert broadcaster.listener_count == 0

    @pytest.mark.asyncio
    async def test_waits_for_review_to_start(self, streaming_settings) -> None:
        # Arrange
        registry = BroadcasterRegistry()
        stream = review_event_stream("r1", registry, streaming_settings, StubRequest())

        # Act
        waiting = frames(await stream.__anext__())[0]
        broadcaster = registry.create("r1")
        nxt = asyncio.ensure_future(next_frame(stream))
        await wait_for_listener(broadcaster)
        broadcaster.publish(complete_event(CompletionStatus.ERROR, "Agent failed"))
        final = await nxt

        # Assert
        assert waiting["type"] == "phase"
        assert waiting["data"] == {"phase": "understanding", "message": "Waiting to start..."}
        assert final["data"] == {"status": "error", "message": "Agent failed"}

    @pytest.mark.asyncio
    async def test_gives_up_after_attach_timeout(self, streaming_settings) -> None:
        registry = BroadcasterRegistry()
        stream = review_event_stream("r1", registry, streaming_settings, StubRequest())

        chunks = [chunk async for chunk in stream]

        assert frames(chunks[0])[0]["data"]["message"] == "Waiting to start..."
        assert all(chunk == KEEPALIVE_FRAME for chunk in chunks[1:])

    @pytest.mark.asyncio
    async def test_disconnect_detaches_listener(self, streaming_settings) -> None:
        # Arrange
        registry = BroadcasterRegistry()
        broadcaster = registry.create("r1")
        request = StubRequest()
        stream = review_event_stream("r1", registry, streaming_settings, request)
        pending = asyncio.ensure_future(stream.__anext__())
        await wait_for_listener(broadcaster)

        # Act
        request.disconnected = True
        with pytest.raises(StopAsyncIteration):
            await pending

        # Assert
        assert broadcaster.listener_count == 0

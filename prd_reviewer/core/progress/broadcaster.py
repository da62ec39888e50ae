"""
Per-review event fan-out.

EventBroadcaster delivers each ProgressEvent of one review to every attached
listener, synchronously and in attachment order. BroadcasterRegistry maps
review ids to the broadcaster of their current run and is owned by the
application (created in create_app, kept on app.state).

Dependencies: threading, asyncio
System role: In-memory pub/sub between the review runner and SSE clients
"""

import asyncio
import logging
import threading
from typing import Callable

from prd_reviewer.models.progress_events import ProgressEvent

logger = logging.getLogger(__name__)

Listener = Callable[[ProgressEvent], None]
CloseCallback = Callable[[], None]


class EventBroadcaster:
    """
    Fan-out of one review's progress events.

    Listeners must not block; the SSE endpoint attaches queue-backed
    listeners. A failing listener is logged and skipped.
    """

    def __init__(self, review_id: str, max_listeners: int = 20) -> None:
        self.review_id = review_id
        self.max_listeners = max_listeners
        self._lock = threading.Lock()
        self._listeners: list[tuple[Listener, CloseCallback | None]] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def add_listener(self, listener: Listener, on_close: CloseCallback | None = None) -> None:
        """
        Attach a listener.

        Args:
            listener: Called with every published event
            on_close: Called once when the broadcaster closes
        """
        with self._lock:
            self._listeners.append((listener, on_close))
            count = len(self._listeners)
        if count > self.max_listeners:
            logger.warning(
                "Broadcaster listener count above limit",
                extra={"review_id": self.review_id, "listeners": count, "limit": self.max_listeners},
            )

    def remove_listener(self, listener: Listener) -> None:
        with self._lock:
            self._listeners = [entry for entry in self._listeners if entry[0] != listener]

    def publish(self, event: ProgressEvent) -> None:
        with self._lock:
            listeners = [entry[0] for entry in self._listeners]

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    f"Progress listener failed: {e}",
                    extra={"review_id": self.review_id, "event_type": event.type},
                    exc_info=True,
                )

    def close(self) -> None:
        """Mark closed and notify listeners; idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            callbacks = [entry[1] for entry in self._listeners if entry[1] is not None]

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.error(
                    f"Progress listener close failed: {e}",
                    extra={"review_id": self.review_id},
                    exc_info=True,
                )


class BroadcasterRegistry:
    """Review id to active broadcaster mapping."""

    def __init__(self, max_listeners: int = 20) -> None:
        self.max_listeners = max_listeners
        self._lock = threading.Lock()
        self._broadcasters: dict[str, EventBroadcaster] = {}

    def create(self, review_id: str) -> EventBroadcaster:
        """Register a fresh broadcaster, replacing the one of any earlier run."""
        broadcaster = EventBroadcaster(review_id, max_listeners=self.max_listeners)
        with self._lock:
            previous = self._broadcasters.get(review_id)
            self._broadcasters[review_id] = broadcaster
        if previous is not None:
            previous.close()
        return broadcaster

    def get(self, review_id: str) -> EventBroadcaster | None:
        with self._lock:
            return self._broadcasters.get(review_id)

    def remove(self, review_id: str, expected: EventBroadcaster | None = None) -> bool:
        """
        Unregister and close a review's broadcaster.

        Args:
            review_id: Review ID
            expected: When given, only remove if it is still the registered instance

        Returns:
            bool: True if a broadcaster was removed
        """
        with self._lock:
            current = self._broadcasters.get(review_id)
            if current is None or (expected is not None and current is not expected):
                return False
            del self._broadcasters[review_id]
        current.close()
        return True

    def schedule_teardown(
        self,
        review_id: str,
        broadcaster: EventBroadcaster,
        delay: float,
    ) -> asyncio.TimerHandle:
        """Remove the broadcaster after a grace period on the running loop."""
        loop = asyncio.get_running_loop()
        return loop.call_later(delay, self.remove, review_id, broadcaster)

    def __contains__(self, review_id: object) -> bool:
        with self._lock:
            return review_id in self._broadcasters

    def __len__(self) -> int:
        with self._lock:
            return len(self._broadcasters)

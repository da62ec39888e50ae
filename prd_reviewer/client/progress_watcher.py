"""
Review progress watcher.

Follows a review over the SSE push channel and falls back to status
polling when the channel is unusable:

    streaming --(3 consecutive errors | permanent close)--> polling
    streaming --(complete event)--> wait completion_delay --> on_complete
    polling --(status completed/error)--> on_complete

A parsed frame resets the consecutive error count. Transport errors and
streams that end without a complete event count as errors and trigger a
reconnect. A non-200 or non-event-stream response closes the channel for
good. close() stops everything, like unmounting a progress view.

Dependencies: httpx, prd_reviewer.client
System role: Client reconciliation of push and poll channels
"""

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable

import httpx

from prd_reviewer.client.progress_state import ReviewProgressState
from prd_reviewer.client.sse import SSEParser
from prd_reviewer.models.progress_events import (
    CompleteEvent,
    CompletionStatus,
    ProgressEvent,
    parse_progress_event,
)

logger = logging.getLogger(__name__)

CompleteCallback = Callable[[], Awaitable[None] | None]
EventCallback = Callable[[ProgressEvent], None]

TERMINAL_STATUSES = {"completed", "error"}


class ReviewProgressWatcher:
    """
    Watches one review until it finishes or the watcher is closed.

    Attributes:
        state: Reconciled progress state
        connected: Whether a push stream is currently open
        fallback_polling: Whether the watcher switched to status polling
    """

    def __init__(
        self,
        base_url: str,
        review_id: str,
        on_complete: CompleteCallback | None = None,
        on_event: EventCallback | None = None,
        client: httpx.AsyncClient | None = None,
        max_stream_errors: int = 3,
        reconnect_delay: float = 1.0,
        poll_interval: float = 3.0,
        completion_delay: float = 1.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.review_id = review_id
        self.on_complete = on_complete
        self.on_event = on_event
        self.max_stream_errors = max_stream_errors
        self.reconnect_delay = reconnect_delay
        self.poll_interval = poll_interval
        self.completion_delay = completion_delay

        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None

        self.state = ReviewProgressState()
        self.connected = False
        self.fallback_polling = False
        self.stream_errors = 0

        self._closed = asyncio.Event()
        self._completion_notified = False
        self._task: asyncio.Task | None = None

    @property
    def stream_url(self) -> str:
        return f"{self.base_url}/api/v1/reviews/{self.review_id}/stream"

    @property
    def status_url(self) -> str:
        return f"{self.base_url}/api/v1/reviews/{self.review_id}/status"

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    async def run(self) -> ReviewProgressState:
        """
        Watch until the review finishes or close() is called.

        Returns:
            ReviewProgressState: Final reconciled state
        """
        self._task = asyncio.current_task()
        try:
            await self._stream()
            if self.fallback_polling and not self._finished:
                await self._poll()
        except asyncio.CancelledError:
            if not self.closed:
                raise
        finally:
            self.connected = False
            if self._owns_client:
                await self._client.aclose()
        return self.state

    async def close(self) -> None:
        """Stop streaming and polling; on_complete will not fire afterwards."""
        self._closed.set()
        task = self._task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()

    @property
    def _finished(self) -> bool:
        return self.closed or self._completion_notified

    async def _stream(self) -> None:
        while not self._finished:
            try:
                if await self._consume_stream():
                    return
                # Stream ended without a complete event
                self.stream_errors += 1
            except httpx.HTTPError as e:
                self.stream_errors += 1
                logger.debug(
                    "Progress stream error",
                    extra={"review_id": self.review_id, "error_msg": str(e), "errors": self.stream_errors},
                )
            finally:
                self.connected = False

            if self.fallback_polling or self.stream_errors >= self.max_stream_errors:
                self._switch_to_polling()
                return
            await self._sleep(self.reconnect_delay)

    async def _consume_stream(self) -> bool:
        """
        Read one stream connection.

        Returns:
            bool: True when streaming is over (complete handled or channel
            permanently closed), False when a reconnect is due
        """
        timeout = httpx.Timeout(10.0, read=None)
        async with self._client.stream(
            "GET",
            self.stream_url,
            headers={"Accept": "text/event-stream"},
            timeout=timeout,
        ) as response:
            content_type = response.headers.get("content-type", "")
            if response.status_code != 200 or not content_type.startswith("text/event-stream"):
                logger.warning(
                    "Progress stream unavailable",
                    extra={"review_id": self.review_id, "status_code": response.status_code},
                )
                self._switch_to_polling()
                return True

            self.connected = True
            parser = SSEParser()
            async for chunk in response.aiter_text():
                for payload in parser.feed(chunk):
                    self.stream_errors = 0
                    event = parse_progress_event(payload)
                    if event is None:
                        continue
                    self._apply(event)
                    if isinstance(event, CompleteEvent):
                        await self._sleep(self.completion_delay)
                        await self._notify_complete()
                        return True
        return False

    def _switch_to_polling(self) -> None:
        if not self.fallback_polling:
            logger.info("Falling back to status polling", extra={"review_id": self.review_id})
        self.fallback_polling = True

    async def _poll(self) -> None:
        while not self._finished:
            try:
                response = await self._client.get(self.status_url)
                response.raise_for_status()
                body: dict[str, Any] = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.debug(
                    "Status poll failed",
                    extra={"review_id": self.review_id, "error_msg": str(e)},
                )
            else:
                status = body.get("status")
                if status in TERMINAL_STATUSES:
                    self.state.terminal_status = CompletionStatus(status)
                    if status == "error":
                        self.state.error = body.get("error")
                    await self._notify_complete()
                    return
            await self._sleep(self.poll_interval)

    def _apply(self, event: ProgressEvent) -> None:
        self.state.apply(event)
        if self.on_event is not None:
            self.on_event(event)

    async def _notify_complete(self) -> None:
        if self._finished:
            return
        self._completion_notified = True
        if self.on_complete is None:
            return
        result = self.on_complete()
        if inspect.isawaitable(result):
            await result

    async def _sleep(self, seconds: float) -> None:
        """Sleep, waking early if the watcher is closed."""
        try:
            await asyncio.wait_for(self._closed.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass

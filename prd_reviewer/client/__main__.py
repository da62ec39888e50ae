"""
Watch a review's progress from the terminal.

Usage:
    python -m prd_reviewer.client <review_id> [--api-base http://localhost:8000]
"""

import argparse
import asyncio
import logging
import sys

import httpx

from prd_reviewer.client.formatting import format_duration, format_tokens
from prd_reviewer.client.progress_state import ReviewProgressState
from prd_reviewer.client.progress_watcher import ReviewProgressWatcher
from prd_reviewer.models.progress_events import (
    ActivityEvent,
    CompleteEvent,
    CompletionStatus,
    PhaseEvent,
    ProgressEvent,
    ProgressPercentEvent,
    SubagentEvent,
    SubagentStatus,
    UsageEvent,
)
from prd_reviewer.models.review import ReviewDetailResponse
from prd_reviewer.observability.logger import configure_logging

logger = logging.getLogger("prd_reviewer.client")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prd-reviewer-watch",
        description="Follow a PRD review's live progress.",
    )
    parser.add_argument("review_id", help="Review ID to watch")
    parser.add_argument(
        "--api-base",
        default="http://localhost:8000",
        help="Base URL of the PRD reviewer API",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Log level (DEBUG, INFO, WARNING, ...)",
    )
    return parser


def describe_event(event: ProgressEvent, state: ReviewProgressState) -> str | None:
    if isinstance(event, PhaseEvent):
        return f"[phase] {event.data.phase.value}: {event.data.message}"
    if isinstance(event, SubagentEvent):
        return f"[{event.data.status.value}] {event.data.agent_type}: {event.data.description}"
    if isinstance(event, ActivityEvent):
        return f"  {event.data.agent_type} {event.data.tool} {event.data.detail}"
    if isinstance(event, ProgressPercentEvent):
        return f"[{state.percent:3d}%] {state.message}"
    if isinstance(event, UsageEvent):
        return (
            f"[usage] {format_tokens(event.data.session.total)} tokens, "
            f"~${event.data.cost_usd:.4f}"
        )
    if isinstance(event, CompleteEvent):
        return f"[complete] {event.data.status.value}"
    return None


def describe_review(review: ReviewDetailResponse) -> list[str]:
    """Summary lines for a finished review, from its stored usage."""
    lines = [f"[review] {review.original_name}: {review.status.value}"]
    usage = review.usage
    if usage is None:
        return lines

    totals = usage.total_tokens
    lines.append(
        f"[cost] ${usage.total_cost_usd:.4f} over {usage.num_turns} turns, "
        f"{format_duration(usage.duration_ms)} total, "
        f"{format_duration(usage.duration_api_ms)} API"
    )
    lines.append(
        f"[tokens] {format_tokens(totals.total)} "
        f"(in {format_tokens(totals.input_tokens)}, out {format_tokens(totals.output_tokens)}, "
        f"cache read {format_tokens(totals.cache_read_tokens)}, "
        f"cache write {format_tokens(totals.cache_creation_tokens)})"
    )
    for agent in usage.subagent_breakdown:
        lines.append(
            f"  {agent.agent_type} ({agent.model}) {agent.description}: "
            f"{format_tokens(agent.usage.total)} tokens"
        )
    return lines


async def fetch_review(client: httpx.AsyncClient, api_base: str, review_id: str) -> ReviewDetailResponse:
    response = await client.get(f"{api_base.rstrip('/')}/api/v1/reviews/{review_id}")
    response.raise_for_status()
    return ReviewDetailResponse.model_validate(response.json())


async def watch(
    api_base: str,
    review_id: str,
    client: httpx.AsyncClient | None = None,
) -> ReviewProgressState:
    """
    Follow a review, then log the stored detail once it finishes.

    Args:
        api_base: Base URL of the API
        review_id: Review to follow
        client: HTTP client to use; one is created and closed when omitted

    Returns:
        ReviewProgressState: Final reconciled state
    """
    owns_client = client is None
    client = client or httpx.AsyncClient()
    watcher: ReviewProgressWatcher | None = None

    def on_event(event: ProgressEvent) -> None:
        line = describe_event(event, watcher.state)
        if line:
            logger.info(line)

    async def on_complete() -> None:
        try:
            review = await fetch_review(client, api_base, review_id)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Could not load review detail: {e}")
            return
        for line in describe_review(review):
            logger.info(line)

    watcher = ReviewProgressWatcher(
        api_base,
        review_id,
        on_complete=on_complete,
        on_event=on_event,
        client=client,
    )
    try:
        return await watcher.run()
    finally:
        if owns_client:
            await client.aclose()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)

    try:
        state = asyncio.run(watch(args.api_base, args.review_id))
    except KeyboardInterrupt:
        return 130

    if state.terminal_status == CompletionStatus.ERROR:
        logger.error(f"Review failed: {state.error or 'unknown error'}")
        return 1
    if state.terminal_status == CompletionStatus.COMPLETED:
        completed = sum(1 for s in state.subagents if s.status == SubagentStatus.COMPLETED)
        logger.info(f"Review complete ({completed} subagents finished)")
        return 0
    return 1


if __name__ == "__main__":
    sys.exit(main())

"""
Review pipeline.

Runs one review through the agent engine:
    Lead agent -> codebase explorers (parallel) -> senior developer -> synthesis

Engine events feed the phase inferencer, whose ProgressEvents go to the
caller's callback. Failures are announced on the progress stream before they
propagate, so connected observers learn about them without polling.

Dependencies: prd_reviewer.boundary.agent_engine, prd_reviewer.core.progress
System role: Orchestration of a single review run
"""

import json
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from prd_reviewer.boundary.agent_engine.engine_client import ClaudeReviewEngine, EngineRequest
from prd_reviewer.core.agentic_system.review_agents.prompts import SourceDocument, build_lead_prompt
from prd_reviewer.core.exceptions import EngineExecutionError
from prd_reviewer.core.progress.phase_inferencer import EmitFn, PhaseInferencer
from prd_reviewer.models.engine_events import TerminalFailure, TerminalSuccess
from prd_reviewer.models.usage import SessionUsage

logger = logging.getLogger(__name__)


@dataclass
class ReviewInput:
    """Extracted inputs of one review."""

    prd_content: str
    repo_paths: list[str]
    sources: list[SourceDocument] = field(default_factory=list)
    additional_context: str | None = None
    web_search_enabled: bool = False


@dataclass
class ReviewResult:
    """Markdown review and its authoritative usage summary."""

    output: str
    usage: SessionUsage


async def run_review(
    engine: ClaudeReviewEngine,
    review_input: ReviewInput,
    on_progress: EmitFn,
    activity_throttle_seconds: float = 1.0,
    usage_interval_seconds: float = 5.0,
    clock: Callable[[], float] = time.monotonic,
) -> ReviewResult:
    """
    Execute a review and stream its progress.

    Args:
        engine: Agent engine exposing ``models`` and ``stream(request)``
        review_input: PRD text, repositories and supplementary sources
        on_progress: Receives every ProgressEvent in order
        activity_throttle_seconds: Minimum spacing of activity events per subagent
        usage_interval_seconds: Minimum spacing of live usage snapshots
        clock: Monotonic clock in seconds

    Returns:
        ReviewResult: Markdown output and session usage

    Raises:
        EngineExecutionError: Engine failed or ended without a result
    """
    models = engine.models
    logger.info(
        "Starting PRD review pipeline",
        extra={
            "repo_paths": review_input.repo_paths,
            "prd_length": len(review_input.prd_content),
            "supplementary_sources": len(review_input.sources),
            "has_additional_context": bool(review_input.additional_context),
        },
    )

    inferencer = PhaseInferencer(
        on_progress,
        models=models,
        clock=clock,
        activity_throttle_seconds=activity_throttle_seconds,
        usage_interval_seconds=usage_interval_seconds,
    )
    request = EngineRequest(
        prompt=build_lead_prompt(
            review_input.prd_content,
            review_input.repo_paths,
            review_input.sources,
            review_input.additional_context,
            review_input.web_search_enabled,
        ),
        repo_paths=review_input.repo_paths,
        models=models,
        web_search_enabled=review_input.web_search_enabled,
    )

    start = clock()
    inferencer.start()
    terminal: TerminalSuccess | None = None

    try:
        async for event in engine.stream(request):
            if isinstance(event, TerminalFailure):
                raise EngineExecutionError(
                    f"Agent failed with subtype: {event.subtype}. Errors: {json.dumps(event.errors)}",
                    subtype=event.subtype,
                    details={"total_cost_usd": event.total_cost_usd},
                )
            if isinstance(event, TerminalSuccess):
                terminal = event
                continue
            inferencer.handle(event)

        if terminal is None:
            raise EngineExecutionError("Agent finished without a result")

    except Exception as e:
        logger.error(f"Agent orchestration failed: {e}", exc_info=True)
        inferencer.fail(str(e) or "Unknown error")
        if isinstance(e, EngineExecutionError):
            raise
        raise EngineExecutionError(str(e) or type(e).__name__) from e

    duration_ms = int((clock() - start) * 1000)
    usage = inferencer.build_session_usage(terminal, duration_ms)

    logger.info(
        "PRD review completed",
        extra={
            "duration_ms": duration_ms,
            "cost_usd": round(usage.total_cost_usd, 4),
            "input_tokens": usage.total_tokens.input_tokens,
            "output_tokens": usage.total_tokens.output_tokens,
        },
    )

    inferencer.complete()
    return ReviewResult(output=terminal.result, usage=usage)

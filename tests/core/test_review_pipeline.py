"""
Test suite for the review pipeline.

Runs run_review against a scripted engine and checks the result, the
progress stream and failure handling.

System role: Verification of single review orchestration
"""

import pytest

from prd_reviewer.core.agentic_system.review_agents.prompts import SourceDocument
from prd_reviewer.core.agentic_system.review_pipeline import ReviewInput, run_review
from prd_reviewer.core.exceptions import EngineExecutionError
from prd_reviewer.models.engine_events import (
    ControllerText,
    DelegationInvoked,
    ResultDelivered,
    SessionStarted,
    TerminalFailure,
    TerminalSuccess,
    UsageReported,
)
from prd_reviewer.models.progress_events import CompleteEvent, CompletionStatus
from prd_reviewer.models.usage import TokenUsage


@pytest.fixture
def review_input() -> ReviewInput:
    return ReviewInput(
        prd_content="# Checkout\nUsers can pay with saved cards.",
        repo_paths=["/srv/shop"],
        sources=[SourceDocument(name="design.md", content="Cards are tokenised.", label="Design Doc")],
        additional_context="Launch is in Q3",
    )


@pytest.fixture
def successful_events() -> list:
    return [
        SessionStarted("session-1"),
        DelegationInvoked("toolu_e0", "codebase-explorer", "Payments"),
        UsageReported("toolu_e0", TokenUsage(input_tokens=200, output_tokens=20)),
        ResultDelivered("toolu_e0"),
        DelegationInvoked("toolu_s", "senior-developer", "Feasibility"),
        ResultDelivered("toolu_s"),
        ControllerText("# PRD Review"),
        UsageReported(None, TokenUsage(input_tokens=50)),
        TerminalSuccess(result="# PRD Review\nLooks feasible.", total_cost_usd=0.12, num_turns=4),
    ]


class TestRunReviewSuccess:
    """Test suite for successful runs."""

    @pytest.mark.asyncio
    async def test_returns_output_and_usage(
        self, make_engine, review_input, successful_events, fake_clock
    ) -> None:
        # Arrange
        engine = make_engine(successful_events)
        events = []

        # Act
        result = await run_review(engine, review_input, events.append, clock=fake_clock)

        # Assert
        assert result.output == "# PRD Review\nLooks feasible."
        assert result.usage.total_cost_usd == 0.12
        assert result.usage.total_tokens.input_tokens == 250
        assert [u.agent_type for u in result.usage.subagent_breakdown] == [
            "lead-agent",
            "codebase-explorer",
            "senior-developer",
        ]

    @pytest.mark.asyncio
    async def test_stream_ends_with_single_completion(
        self, make_engine, review_input, successful_events
    ) -> None:
        engine = make_engine(successful_events)
        events = []

        await run_review(engine, review_input, events.append)

        completes = [e for e in events if isinstance(e, CompleteEvent)]
        assert len(completes) == 1
        assert events[-1] is completes[0]
        assert completes[0].data.status == CompletionStatus.COMPLETED
        assert events[-2].data.percent == 100

    @pytest.mark.asyncio
    async def test_engine_receives_prompt_with_inputs(
        self, make_engine, review_input, successful_events
    ) -> None:
        engine = make_engine(successful_events)

        await run_review(engine, review_input, lambda e: None)

        request = engine.requests[0]
        assert "Users can pay with saved cards." in request.prompt
        assert "/srv/shop" in request.prompt
        assert "Cards are tokenised." in request.prompt
        assert "Launch is in Q3" in request.prompt
        assert request.repo_paths == ["/srv/shop"]


class TestRunReviewFailure:
    """Test suite for failing runs."""

    @pytest.mark.asyncio
    async def test_terminal_failure_raises_and_announces(self, make_engine, review_input) -> None:
        # Arrange
        engine = make_engine(
            [TerminalFailure(subtype="error_max_turns", errors=["Reached max turns"])]
        )
        events = []

        # Act
        with pytest.raises(EngineExecutionError) as exc_info:
            await run_review(engine, review_input, events.append)

        # Assert
        message = 'Agent failed with subtype: error_max_turns. Errors: ["Reached max turns"]'
        assert exc_info.value.message == message
        assert events[-1].data.status == CompletionStatus.ERROR
        assert events[-1].data.message == message

    @pytest.mark.asyncio
    async def test_missing_terminal_message_is_an_error(self, make_engine, review_input) -> None:
        engine = make_engine([ControllerText("thinking")])
        events = []

        with pytest.raises(EngineExecutionError, match="finished without a result"):
            await run_review(engine, review_input, events.append)

        assert isinstance(events[-1], CompleteEvent)

    @pytest.mark.asyncio
    async def test_engine_exception_is_wrapped(self, make_engine, review_input) -> None:
        engine = make_engine([], error=ConnectionError("CLI exited with code 1"))
        events = []

        with pytest.raises(EngineExecutionError) as exc_info:
            await run_review(engine, review_input, events.append)

        assert exc_info.value.message == "CLI exited with code 1"
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert events[-1].data.message == "CLI exited with code 1"

"""
Phase and activity inference over the engine event stream.

The engine gives no explicit notion of review phases. Phases, subagent
lifecycle and activity are inferred from delegations, tool calls and tool
results as they arrive, and converted into a bounded stream of
ProgressEvents for observers.

Phases only move forward:
    understanding -> exploring -> analyzing -> synthesizing

Dependencies: prd_reviewer.models, prd_reviewer.core.progress.usage_accumulator
System role: Progress inference engine between the agent engine and the broadcaster
"""

import logging
import math
import time
from typing import Any, Callable

from prd_reviewer.core.progress.usage_accumulator import UsageAccumulator, UsageEmitGate
from prd_reviewer.models.agents import LEAD_AGENT_DESCRIPTION, AgentKind, AgentModels
from prd_reviewer.models.engine_events import (
    ControllerText,
    DelegationInvoked,
    EngineEvent,
    ResultDelivered,
    SessionStarted,
    TerminalFailure,
    TerminalSuccess,
    ToolInvoked,
    UsageReported,
)
from prd_reviewer.models.progress_events import (
    ActivityEvent,
    ActivityEventData,
    CompletionStatus,
    ProgressEvent,
    ProgressEventData,
    ProgressPercentEvent,
    ReviewPhase,
    SubagentEvent,
    SubagentEventData,
    SubagentStatus,
    UsageEvent,
    UsageEventData,
    complete_event,
    phase_event,
)
from prd_reviewer.models.usage import SessionUsage, SubagentUsage

logger = logging.getLogger(__name__)

EmitFn = Callable[[ProgressEvent], None]


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values."""
    return int(math.floor(value + 0.5))


def describe_tool_call(tool: str, tool_input: dict[str, Any]) -> str | None:
    """
    Human readable detail of a subagent tool call.

    Only file reads and searches are surfaced; everything else returns None.
    """
    if tool == "Read" and tool_input.get("file_path"):
        return str(tool_input["file_path"])
    if tool == "Grep" and tool_input.get("pattern"):
        return f'pattern: "{tool_input["pattern"]}"'
    if tool == "Glob" and tool_input.get("pattern"):
        return f"pattern: {tool_input['pattern']}"
    return None


class PhaseInferencer:
    """
    Stateful converter from EngineEvents to ProgressEvents.

    One instance per review run. Every emitted event goes through ``emit``
    synchronously, in the order it was inferred.

    Attributes:
        phase: Current review phase
        total_explorers: Codebase explorers launched so far
        completed_explorers: Codebase explorers whose results came back
        senior_started: Whether the senior developer was launched
        senior_completed: Whether the senior developer's result came back
        usage: Live usage accumulator
    """

    def __init__(
        self,
        emit: EmitFn,
        models: AgentModels | None = None,
        clock: Callable[[], float] = time.monotonic,
        activity_throttle_seconds: float = 1.0,
        usage_interval_seconds: float = 5.0,
    ) -> None:
        self._emit = emit
        self.models = models or AgentModels()
        self._clock = clock
        self._activity_throttle = activity_throttle_seconds

        self.phase = ReviewPhase.UNDERSTANDING
        self.total_explorers = 0
        self.completed_explorers = 0
        self.senior_started = False
        self.senior_completed = False

        self.tasks: dict[str, tuple[str, str]] = {}
        self._last_activity: dict[str, float] = {}
        self._last_percent = 0

        self.usage = UsageAccumulator()
        self._usage_gate = UsageEmitGate(usage_interval_seconds, clock)

    def start(self) -> None:
        """Announce the first phase."""
        self._emit(phase_event(ReviewPhase.UNDERSTANDING, "Reading and understanding the PRD..."))
        self._emit_progress()

    def handle(self, event: EngineEvent) -> None:
        """Apply one engine event, emitting whatever it implies."""
        if isinstance(event, DelegationInvoked):
            self._on_delegation(event)
        elif isinstance(event, ToolInvoked):
            self._on_tool_call(event)
        elif isinstance(event, ResultDelivered):
            self._on_result(event)
        elif isinstance(event, ControllerText):
            self._on_controller_text()
        elif isinstance(event, UsageReported):
            self.usage.record(event.parent_id, event.usage)
            self._emit_usage()
        elif isinstance(event, SessionStarted):
            logger.info("Agent session initialized", extra={"session_id": event.session_id})
        elif isinstance(event, (TerminalSuccess, TerminalFailure)):
            # Terminal messages are handled by the pipeline.
            pass

    def complete(self) -> None:
        self._last_percent = 100
        self._emit(ProgressPercentEvent(data=ProgressEventData(percent=100, message="Review complete!")))
        self._emit(complete_event(CompletionStatus.COMPLETED))

    def fail(self, message: str) -> None:
        self._emit(complete_event(CompletionStatus.ERROR, message))

    def build_session_usage(self, terminal: TerminalSuccess, duration_ms: int) -> SessionUsage:
        """
        Build the authoritative usage summary of a finished run.

        Engine accounting supplies cost, turns and the per-model breakdown;
        live counters supply token totals and the per-agent breakdown with
        the lead agent first.

        Args:
            terminal: Successful terminal event
            duration_ms: Wall clock duration of the run

        Returns:
            SessionUsage: Summary to persist with the review
        """
        lead = SubagentUsage(
            agent_type=AgentKind.LEAD.value,
            description=LEAD_AGENT_DESCRIPTION,
            model=self.models.lead,
            usage=self.usage.controller.model_copy(),
        )
        return SessionUsage(
            total_cost_usd=terminal.total_cost_usd,
            total_tokens=self.usage.session.model_copy(),
            model_breakdown=dict(terminal.model_usage),
            subagent_breakdown=[lead, *self.usage.subagent_usages()],
            num_turns=terminal.num_turns,
            duration_ms=duration_ms,
            duration_api_ms=terminal.duration_api_ms,
        )

    def _on_delegation(self, event: DelegationInvoked) -> None:
        agent_type = event.agent_type
        self.tasks[event.correlation_id] = (agent_type, event.description)
        self.usage.register_subtask(
            event.correlation_id,
            agent_type,
            event.description,
            self.models.for_kind(agent_type),
        )

        if agent_type == AgentKind.CODEBASE_EXPLORER:
            self.total_explorers += 1
            self._advance(
                ReviewPhase.EXPLORING,
                f"Exploring codebase (0/{self.total_explorers} sections)...",
            )
        elif agent_type == AgentKind.SENIOR_DEVELOPER:
            self.senior_started = True
            self._advance(ReviewPhase.ANALYZING, "Senior developer analyzing findings...")

        logger.info(
            "Launched subagent",
            extra={"agent_type": agent_type, "description": event.description},
        )
        self._emit(
            SubagentEvent(
                data=SubagentEventData(
                    agent_type=agent_type,
                    description=event.description,
                    status=SubagentStatus.STARTED,
                )
            )
        )
        self._emit_progress()

    def _on_tool_call(self, event: ToolInvoked) -> None:
        detail = describe_tool_call(event.tool, event.tool_input)
        if detail is None:
            return

        now = self._clock()
        last = self._last_activity.get(event.parent_id)
        if last is not None and now - last < self._activity_throttle:
            return
        self._last_activity[event.parent_id] = now

        agent_type = self.tasks.get(event.parent_id, ("unknown", ""))[0]
        self._emit(
            ActivityEvent(data=ActivityEventData(agent_type=agent_type, tool=event.tool, detail=detail))
        )

    def _on_result(self, event: ResultDelivered) -> None:
        task = self.tasks.get(event.correlation_id)
        if task is None:
            return
        agent_type, description = task

        if agent_type == AgentKind.CODEBASE_EXPLORER:
            self.completed_explorers = min(self.completed_explorers + 1, self.total_explorers)
            logger.info(
                "Explorer completed",
                extra={
                    "completed": self.completed_explorers,
                    "total": self.total_explorers,
                    "description": description,
                },
            )
        elif agent_type == AgentKind.SENIOR_DEVELOPER:
            self.senior_completed = True
            logger.info("Senior developer analysis completed")

        self._emit(
            SubagentEvent(
                data=SubagentEventData(
                    agent_type=agent_type,
                    description=description,
                    status=SubagentStatus.COMPLETED,
                )
            )
        )
        self._emit_progress()
        self._emit_usage(force=True)

    def _on_controller_text(self) -> None:
        if self.senior_completed and self.phase != ReviewPhase.SYNTHESIZING:
            self._advance(ReviewPhase.SYNTHESIZING, "Synthesizing final review...")
            self._emit_progress()

    def _advance(self, phase: ReviewPhase, message: str) -> bool:
        if phase.rank <= self.phase.rank:
            return False
        self.phase = phase
        self._emit(phase_event(phase, message))
        return True

    def _percent_and_message(self) -> tuple[int, str]:
        if self.phase == ReviewPhase.UNDERSTANDING:
            return 5, "Reading and understanding the PRD..."
        if self.phase == ReviewPhase.EXPLORING:
            if self.total_explorers == 0:
                return 15, "Exploring codebase..."
            percent = round_half_up(10 + 50 * self.completed_explorers / self.total_explorers)
            return (
                percent,
                f"Exploring codebase ({self.completed_explorers}/{self.total_explorers} complete)",
            )
        if self.phase == ReviewPhase.ANALYZING:
            if self.senior_completed:
                return 85, "Analysis complete, preparing final output..."
            return 70, "Senior developer analyzing findings..."
        return 92, "Synthesizing final review..."

    def _emit_progress(self) -> None:
        percent, message = self._percent_and_message()
        # A late explorer launch lowers the ratio; keep the bar where it was.
        percent = max(percent, self._last_percent)
        self._last_percent = percent
        self._emit(ProgressPercentEvent(data=ProgressEventData(percent=percent, message=message)))

    def _emit_usage(self, force: bool = False) -> None:
        if not self._usage_gate.ready(force=force):
            return
        self._emit(
            UsageEvent(
                data=UsageEventData(
                    session=self.usage.session.model_copy(),
                    subagents=self.usage.subagent_usages(),
                    cost_usd=self.usage.estimated_cost(self.models.lead),
                )
            )
        )

"""
Client-side review progress state.

Pure reducer over ProgressEvents: apply() folds one event into the state.
The state is what a progress view renders: the four phases, subagents,
a rolling activity log, the progress bar and live usage.

Dependencies: prd_reviewer.models.progress_events
System role: Client reconciliation of the progress stream
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from prd_reviewer.models.progress_events import (
    PHASE_ORDER,
    ActivityEvent,
    CompleteEvent,
    CompletionStatus,
    PhaseEvent,
    ProgressEvent,
    ProgressPercentEvent,
    ReviewPhase,
    SubagentEvent,
    SubagentStatus,
    UsageEvent,
    parse_progress_event,
)
from prd_reviewer.models.usage import SubagentUsage, TokenUsage

MAX_ACTIVITIES = 50

PHASE_LABELS: dict[ReviewPhase, str] = {
    ReviewPhase.UNDERSTANDING: "Understanding PRD",
    ReviewPhase.EXPLORING: "Exploring codebase",
    ReviewPhase.ANALYZING: "Senior developer analysis",
    ReviewPhase.SYNTHESIZING: "Synthesizing final review",
}

PhaseStatus = Literal["pending", "active", "completed"]


@dataclass
class PhaseInfo:
    key: ReviewPhase
    label: str
    status: PhaseStatus = "pending"
    message: str | None = None


@dataclass
class SubagentInfo:
    agent_type: str
    description: str
    status: SubagentStatus


@dataclass
class ActivityEntry:
    timestamp: str
    agent_type: str
    tool: str
    detail: str


def initial_phases() -> list[PhaseInfo]:
    return [
        PhaseInfo(
            key=phase,
            label=PHASE_LABELS[phase],
            status="active" if phase == ReviewPhase.UNDERSTANDING else "pending",
        )
        for phase in PHASE_ORDER
    ]


@dataclass
class ReviewProgressState:
    """
    Reconciled view of one review's progress.

    Attributes:
        phases: The four phases in order with their status
        percent: Progress bar value
        message: Progress message
        subagents: Subagents keyed by (agent_type, description), launch order
        activities: Most recent activity entries, oldest first
        session_usage: Latest live session token totals
        subagent_usages: Latest live per-subagent usage
        cost_usd: Latest live cost estimate
        terminal_status: completed or error once the run ends
        error: Failure message of an errored run
    """

    phases: list[PhaseInfo] = field(default_factory=initial_phases)
    percent: int = 0
    message: str = "Starting..."
    subagents: list[SubagentInfo] = field(default_factory=list)
    activities: list[ActivityEntry] = field(default_factory=list)
    session_usage: TokenUsage | None = None
    subagent_usages: list[SubagentUsage] = field(default_factory=list)
    cost_usd: float = 0.0
    terminal_status: CompletionStatus | None = None
    error: str | None = None

    @property
    def is_complete(self) -> bool:
        return self.terminal_status is not None

    def apply(self, event: ProgressEvent | dict[str, Any]) -> bool:
        """
        Fold one event into the state.

        Args:
            event: Parsed ProgressEvent, or a raw decoded payload

        Returns:
            bool: False when the event was not understood and ignored
        """
        if isinstance(event, dict):
            event = parse_progress_event(event)
            if event is None:
                return False

        if isinstance(event, PhaseEvent):
            self._apply_phase(event)
        elif isinstance(event, SubagentEvent):
            self._apply_subagent(event)
        elif isinstance(event, ActivityEvent):
            self.activities.append(
                ActivityEntry(
                    timestamp=event.timestamp,
                    agent_type=event.data.agent_type,
                    tool=event.data.tool,
                    detail=event.data.detail,
                )
            )
            del self.activities[:-MAX_ACTIVITIES]
        elif isinstance(event, ProgressPercentEvent):
            self.percent = event.data.percent
            self.message = event.data.message
        elif isinstance(event, UsageEvent):
            self.session_usage = event.data.session
            self.subagent_usages = list(event.data.subagents)
            self.cost_usd = event.data.cost_usd
        elif isinstance(event, CompleteEvent):
            self._apply_complete(event)
        else:
            return False
        return True

    def _apply_phase(self, event: PhaseEvent) -> None:
        target = event.data.phase.rank
        for phase in self.phases:
            rank = phase.key.rank
            if rank == target:
                phase.status = "active"
                phase.message = event.data.message
            elif rank < target:
                phase.status = "completed"

    def _apply_subagent(self, event: SubagentEvent) -> None:
        data = event.data
        for subagent in self.subagents:
            if subagent.agent_type == data.agent_type and subagent.description == data.description:
                subagent.status = data.status
                return
        self.subagents.append(
            SubagentInfo(agent_type=data.agent_type, description=data.description, status=data.status)
        )

    def _apply_complete(self, event: CompleteEvent) -> None:
        self.terminal_status = event.data.status
        if event.data.status == CompletionStatus.COMPLETED:
            self.percent = 100
            self.message = "Review complete!"
            for phase in self.phases:
                phase.status = "completed"
        else:
            self.error = event.data.message

"""
Progress event schemas for the review push channel.

Six event variants discriminated on ``type``. Every event carries an
ISO-8601 UTC timestamp. Events are ephemeral: they exist only between the
inferencer and connected clients and are never persisted.

SSE framing:
    data: {"type": "phase", "timestamp": "...", "data": {...}}

Dependencies: pydantic
System role: Streaming protocol schemas
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from prd_reviewer.models.usage import SubagentUsage, TokenUsage


class ReviewPhase(str, Enum):
    """Ordered macro stages of a review."""

    UNDERSTANDING = "understanding"
    EXPLORING = "exploring"
    ANALYZING = "analyzing"
    SYNTHESIZING = "synthesizing"

    @property
    def rank(self) -> int:
        return PHASE_ORDER.index(self)


PHASE_ORDER: list[ReviewPhase] = [
    ReviewPhase.UNDERSTANDING,
    ReviewPhase.EXPLORING,
    ReviewPhase.ANALYZING,
    ReviewPhase.SYNTHESIZING,
]


class SubagentStatus(str, Enum):
    STARTED = "started"
    COMPLETED = "completed"


class CompletionStatus(str, Enum):
    COMPLETED = "completed"
    ERROR = "error"


def utc_timestamp() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


class PhaseEventData(BaseModel):
    phase: ReviewPhase
    message: str


class SubagentEventData(BaseModel):
    agent_type: str
    description: str
    status: SubagentStatus


class ActivityEventData(BaseModel):
    agent_type: str
    tool: str
    detail: str


class ProgressEventData(BaseModel):
    percent: int = Field(ge=0, le=100)
    message: str


class UsageEventData(BaseModel):
    session: TokenUsage
    subagents: list[SubagentUsage] = Field(default_factory=list)
    cost_usd: float = 0.0


class CompleteEventData(BaseModel):
    status: CompletionStatus
    message: str | None = None


class _ProgressEventBase(BaseModel):
    """Shared envelope fields and SSE framing."""

    timestamp: str = Field(default_factory=utc_timestamp)

    def to_sse(self) -> str:
        """Frame the event as a single SSE ``data:`` message."""
        return f"data: {self.model_dump_json(exclude_none=True)}\n\n"


class PhaseEvent(_ProgressEventBase):
    type: Literal["phase"] = "phase"
    data: PhaseEventData


class SubagentEvent(_ProgressEventBase):
    type: Literal["subagent"] = "subagent"
    data: SubagentEventData


class ActivityEvent(_ProgressEventBase):
    type: Literal["activity"] = "activity"
    data: ActivityEventData


class ProgressPercentEvent(_ProgressEventBase):
    type: Literal["progress"] = "progress"
    data: ProgressEventData


class UsageEvent(_ProgressEventBase):
    type: Literal["usage"] = "usage"
    data: UsageEventData


class CompleteEvent(_ProgressEventBase):
    type: Literal["complete"] = "complete"
    data: CompleteEventData


ProgressEvent = Annotated[
    Union[
        PhaseEvent,
        SubagentEvent,
        ActivityEvent,
        ProgressPercentEvent,
        UsageEvent,
        CompleteEvent,
    ],
    Field(discriminator="type"),
]

_progress_event_adapter: TypeAdapter[ProgressEvent] = TypeAdapter(ProgressEvent)


def parse_progress_event(raw: Any) -> ProgressEvent | None:
    """
    Validate a decoded JSON payload into a ProgressEvent.

    Unknown variants and malformed payloads yield None so that consumers can
    skip them; unknown fields are ignored.

    Args:
        raw: Decoded JSON value

    Returns:
        ProgressEvent | None: Parsed event, or None when not understood
    """
    try:
        return _progress_event_adapter.validate_python(raw)
    except ValidationError:
        return None


def phase_event(phase: ReviewPhase, message: str) -> PhaseEvent:
    return PhaseEvent(data=PhaseEventData(phase=phase, message=message))


def complete_event(status: CompletionStatus, message: str | None = None) -> CompleteEvent:
    return CompleteEvent(data=CompleteEventData(status=status, message=message))

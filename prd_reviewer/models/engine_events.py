"""
Engine event variants.

Closed set of message shapes the review pipeline understands. The agent
engine adapter converts every raw engine message into these on arrival, so
nothing past the boundary depends on the engine's own message classes.

Dependencies: dataclasses, prd_reviewer.models.usage
System role: Typed boundary between the execution engine and progress inference
"""

from dataclasses import dataclass, field
from typing import Any, Union

from prd_reviewer.models.usage import ModelUsageData, TokenUsage


@dataclass(frozen=True)
class SessionStarted:
    """Engine session initialised."""

    session_id: str | None


@dataclass(frozen=True)
class ControllerText:
    """Text block written by the lead agent (no parent correlation)."""

    text: str


@dataclass(frozen=True)
class DelegationInvoked:
    """Lead agent launched a subagent through the Task tool."""

    correlation_id: str
    agent_type: str
    description: str


@dataclass(frozen=True)
class ToolInvoked:
    """A subagent called one of its own tools."""

    parent_id: str
    tool: str
    tool_input: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ResultDelivered:
    """A tool result flowed back; matches a delegation when the id is known."""

    correlation_id: str


@dataclass(frozen=True)
class UsageReported:
    """Token usage of one assistant message; parent_id None means the lead agent."""

    parent_id: str | None
    usage: TokenUsage


@dataclass(frozen=True)
class TerminalSuccess:
    """Successful end of the run with the engine's own accounting."""

    result: str
    total_cost_usd: float = 0.0
    duration_api_ms: int = 0
    num_turns: int = 0
    model_usage: dict[str, ModelUsageData] = field(default_factory=dict)


@dataclass(frozen=True)
class TerminalFailure:
    """Non-success end of the run."""

    subtype: str
    errors: list[str] = field(default_factory=list)
    total_cost_usd: float = 0.0


EngineEvent = Union[
    SessionStarted,
    ControllerText,
    DelegationInvoked,
    ToolInvoked,
    ResultDelivered,
    UsageReported,
    TerminalSuccess,
    TerminalFailure,
]

"""
Token usage accumulation for live progress.

Keeps running counters for the whole session, for the lead agent and for
each delegated subtask, keyed by the delegation's correlation id. Counters
are sums of non-negative integers so the order usage arrives in never
changes the totals.

Dependencies: prd_reviewer.models.usage
System role: Live usage accounting feeding the phase inferencer
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from prd_reviewer.models.usage import SubagentUsage, TokenUsage

# Approximate USD per million tokens, keyed by model shorthand.
MODEL_PRICING: dict[str, dict[str, float]] = {
    "opus": {"input": 15.0, "output": 75.0},
    "sonnet": {"input": 3.0, "output": 15.0},
    "haiku": {"input": 0.8, "output": 4.0},
}
CACHE_READ_RATIO = 0.1
CACHE_WRITE_RATIO = 1.25

_ENGINE_USAGE_FIELDS = {
    "input_tokens": "input_tokens",
    "output_tokens": "output_tokens",
    "cache_read_input_tokens": "cache_read_tokens",
    "cache_creation_input_tokens": "cache_creation_tokens",
}


def empty_usage() -> TokenUsage:
    """All-zero counter set."""
    return TokenUsage()


def _as_count(value: Any) -> int:
    if value is None:
        return 0
    try:
        count = int(value)
    except (TypeError, ValueError):
        return 0
    return max(count, 0)


def usage_from_engine(raw: Mapping[str, Any] | None) -> TokenUsage:
    """
    Convert an engine usage record into a TokenUsage.

    Args:
        raw: Mapping with optional input_tokens, output_tokens,
            cache_read_input_tokens and cache_creation_input_tokens

    Returns:
        TokenUsage: Counters with missing or negative values as zero
    """
    if not raw:
        return empty_usage()
    return TokenUsage(
        **{target: _as_count(raw.get(source)) for source, target in _ENGINE_USAGE_FIELDS.items()}
    )


def add_usage(counters: TokenUsage, incoming: TokenUsage | Mapping[str, Any] | None) -> TokenUsage:
    """
    Add incoming usage to a counter set in place.

    Args:
        counters: Counter set to mutate
        incoming: TokenUsage, or a raw engine usage mapping

    Returns:
        TokenUsage: The same counters object, for chaining
    """
    if incoming is None:
        return counters
    if not isinstance(incoming, TokenUsage):
        incoming = usage_from_engine(incoming)

    counters.input_tokens += max(incoming.input_tokens, 0)
    counters.output_tokens += max(incoming.output_tokens, 0)
    counters.cache_read_tokens += max(incoming.cache_read_tokens, 0)
    counters.cache_creation_tokens += max(incoming.cache_creation_tokens, 0)
    return counters


def estimate_cost(usage: TokenUsage, model: str) -> float:
    """
    Rough USD cost of usage on the given model shorthand.

    Superseded by the engine's reported total once the run ends.
    Unknown models are priced as sonnet.
    """
    pricing = MODEL_PRICING.get(model, MODEL_PRICING["sonnet"])
    input_price = pricing["input"]
    output_price = pricing["output"]
    return (
        usage.input_tokens * input_price
        + usage.output_tokens * output_price
        + usage.cache_read_tokens * input_price * CACHE_READ_RATIO
        + usage.cache_creation_tokens * input_price * CACHE_WRITE_RATIO
    ) / 1_000_000


@dataclass
class SubtaskRecord:
    """
    One delegated subtask.

    Attributes:
        agent_type: Agent kind the lead agent asked for
        description: Short description given with the delegation
        model: Model shorthand the agent runs on
        usage: Counters accumulated from messages parented to this subtask
    """

    agent_type: str
    description: str
    model: str
    usage: TokenUsage = field(default_factory=empty_usage)

    def to_subagent_usage(self) -> SubagentUsage:
        return SubagentUsage(
            agent_type=self.agent_type,
            description=self.description,
            model=self.model,
            usage=self.usage.model_copy(),
        )


class UsageAccumulator:
    """
    Routes usage reports to session, lead agent and subtask counters.

    Subtask records are kept in launch order and never removed during a run.
    """

    def __init__(self) -> None:
        self.session = empty_usage()
        self.controller = empty_usage()
        # Session usage parented to an id no delegation registered
        self.unattributed = empty_usage()
        self.subtasks: dict[str, SubtaskRecord] = {}

    def register_subtask(
        self,
        correlation_id: str,
        agent_type: str,
        description: str,
        model: str,
    ) -> SubtaskRecord:
        record = SubtaskRecord(agent_type=agent_type, description=description, model=model)
        self.subtasks[correlation_id] = record
        return record

    def record(self, parent_id: str | None, usage: TokenUsage | Mapping[str, Any] | None) -> None:
        """
        Accumulate one usage report.

        Args:
            parent_id: Correlation id of the owning subtask, None for the lead agent
            usage: Usage of a single engine message
        """
        if usage is None:
            return
        if not isinstance(usage, TokenUsage):
            usage = usage_from_engine(usage)

        add_usage(self.session, usage)
        if parent_id is None:
            add_usage(self.controller, usage)
            return
        subtask = self.subtasks.get(parent_id)
        if subtask is None:
            add_usage(self.unattributed, usage)
        else:
            add_usage(subtask.usage, usage)

    def subagent_usages(self) -> list[SubagentUsage]:
        return [record.to_subagent_usage() for record in self.subtasks.values()]

    def estimated_cost(self, controller_model: str) -> float:
        """Approximate session cost; unattributed usage is priced as the lead agent."""
        cost = estimate_cost(self.controller, controller_model)
        cost += estimate_cost(self.unattributed, controller_model)
        for record in self.subtasks.values():
            cost += estimate_cost(record.usage, record.model)
        return cost


class UsageEmitGate:
    """
    Rate gate for usage snapshots.

    ready() is true at most once per interval; a forced check always passes
    and restarts the interval.
    """

    def __init__(self, interval: float = 5.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.interval = interval
        self._clock = clock
        self._last_emit: float | None = None

    def ready(self, force: bool = False) -> bool:
        now = self._clock()
        if force or self._last_emit is None or now - self._last_emit >= self.interval:
            self._last_emit = now
            return True
        return False

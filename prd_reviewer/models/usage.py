"""
Token usage schemas.

Live counters are approximate; SessionUsage is the authoritative summary
persisted once a review completes.

Dependencies: pydantic
System role: Usage accounting contracts shared by streaming and storage
"""

from pydantic import BaseModel, Field


class TokenUsage(BaseModel):
    """Four monotonically accumulated token counters."""

    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    cache_read_tokens: int = Field(default=0, ge=0)
    cache_creation_tokens: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return (
            self.input_tokens
            + self.output_tokens
            + self.cache_read_tokens
            + self.cache_creation_tokens
        )


class ModelUsageData(TokenUsage):
    """Per-model usage reported by the engine at the end of a run."""

    cost_usd: float = 0.0
    context_window: int = 0


class SubagentUsage(BaseModel):
    """
    Usage attributed to one agent of a review.

    Attributes:
        agent_type: Agent kind (lead-agent, codebase-explorer, ...)
        description: Human description given at delegation time
        model: Model shorthand the agent ran on
        usage: Accumulated token counters
    """

    agent_type: str
    description: str
    model: str
    usage: TokenUsage = Field(default_factory=TokenUsage)


class SessionUsage(BaseModel):
    """
    Authoritative usage summary for a completed review.

    Attributes:
        total_cost_usd: Cost reported by the engine
        total_tokens: Session token totals from the live accumulator
        model_breakdown: Engine accounting per model id
        subagent_breakdown: Lead agent first, then each subagent in launch order
        num_turns: Lead agent turns
        duration_ms: Wall clock duration of the run
        duration_api_ms: Time spent in model API calls
    """

    total_cost_usd: float = 0.0
    total_tokens: TokenUsage = Field(default_factory=TokenUsage)
    model_breakdown: dict[str, ModelUsageData] = Field(default_factory=dict)
    subagent_breakdown: list[SubagentUsage] = Field(default_factory=list)
    num_turns: int = 0
    duration_ms: int = 0
    duration_api_ms: int = 0

"""
Agent configuration settings.

Model choices for the lead agent and its subagents, plus engine limits.
Field names map directly to LEAD_AGENT_MODEL, EXPLORER_AGENT_MODEL, etc.

Dependencies: pydantic, pydantic_settings
System role: Execution engine configuration
"""

from typing import Literal

from pydantic import Field

from prd_reviewer.configs.base import BaseSettings

AgentModelChoice = Literal["opus", "sonnet", "haiku"]


class AgentSettings(BaseSettings):
    """Model selection for the review agents."""

    lead_agent_model: AgentModelChoice = Field(
        default="sonnet",
        description="Model for the tech lead (orchestrator) agent",
    )
    explorer_agent_model: AgentModelChoice = Field(
        default="sonnet",
        description="Model for codebase-explorer and web-researcher subagents",
    )
    senior_dev_agent_model: AgentModelChoice = Field(
        default="sonnet",
        description="Model for the senior-developer subagent",
    )
    max_turns: int = Field(default=60, ge=1, description="Maximum lead agent turns")
    anthropic_api_key: str | None = Field(
        default=None,
        description="API key; when unset the local CLI login is used",
    )

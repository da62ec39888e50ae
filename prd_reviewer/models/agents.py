"""
Agent kinds and model assignment.

Dependencies: enum, dataclasses
System role: Shared vocabulary for agent definitions and progress inference
"""

from dataclasses import dataclass
from enum import Enum


class AgentKind(str, Enum):
    """Agent kinds a review can delegate to, plus the lead agent itself."""

    LEAD = "lead-agent"
    CODEBASE_EXPLORER = "codebase-explorer"
    SENIOR_DEVELOPER = "senior-developer"
    WEB_RESEARCHER = "web-researcher"


LEAD_AGENT_DESCRIPTION = "Tech Lead (orchestrator)"


@dataclass(frozen=True)
class AgentModels:
    """Model shorthand (opus, sonnet, haiku) per agent role."""

    lead: str = "sonnet"
    explorer: str = "sonnet"
    senior_dev: str = "sonnet"

    def for_kind(self, agent_type: str) -> str:
        """Model an agent kind runs on; web research shares the explorer model."""
        if agent_type in (AgentKind.CODEBASE_EXPLORER, AgentKind.WEB_RESEARCHER):
            return self.explorer
        if agent_type == AgentKind.SENIOR_DEVELOPER:
            return self.senior_dev
        return self.lead

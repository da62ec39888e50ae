"""
Subagent definitions for a review run.

The lead agent can only delegate through the Task tool; these definitions
are the agent kinds it may delegate to. Explorers and the senior developer
get read-only code tools, the web researcher gets web tools.

Dependencies: claude_agent_sdk
System role: Engine-facing agent configuration
"""

from claude_agent_sdk import AgentDefinition

from prd_reviewer.core.agentic_system.review_agents.prompts import (
    CODEBASE_EXPLORER_PROMPT,
    SENIOR_DEVELOPER_PROMPT,
    WEB_RESEARCHER_PROMPT,
)
from prd_reviewer.models.agents import AgentKind, AgentModels

# Model shorthand to full model id for the top-level query.
MODEL_MAP: dict[str, str] = {
    "opus": "claude-opus-4-6",
    "sonnet": "claude-sonnet-4-20250514",
    "haiku": "claude-haiku-3-5-20241022",
}

CODE_TOOLS = ["Read", "Glob", "Grep"]
WEB_TOOLS = ["WebSearch", "WebFetch"]


def resolve_model_id(shorthand: str) -> str:
    """Full model id for a shorthand; unknown values fall back to sonnet."""
    return MODEL_MAP.get(shorthand, MODEL_MAP["sonnet"])


def build_agent_definitions(
    models: AgentModels,
    web_search_enabled: bool = False,
) -> dict[str, AgentDefinition]:
    """
    Build the subagent set for one review.

    Args:
        models: Model shorthand per role
        web_search_enabled: Add the web-researcher agent

    Returns:
        dict[str, AgentDefinition]: Agent kind to definition
    """
    agents: dict[str, AgentDefinition] = {
        AgentKind.CODEBASE_EXPLORER.value: AgentDefinition(
            description=(
                "Codebase exploration specialist. Searches a repository for code relevant "
                "to one PRD section. Launch one per section; they run in parallel. Give it "
                "the section text, the technical questions to answer and the repo path(s)."
            ),
            prompt=CODEBASE_EXPLORER_PROMPT,
            tools=CODE_TOOLS,
            model=models.explorer,
        ),
        AgentKind.SENIOR_DEVELOPER.value: AgentDefinition(
            description=(
                "Senior developer for feasibility analysis. Launch after every explorer has "
                "reported back, with the full PRD and the consolidated findings. Assesses "
                "feasibility, gaps, complexity and technical risk."
            ),
            prompt=SENIOR_DEVELOPER_PROMPT,
            tools=CODE_TOOLS,
            model=models.senior_dev,
        ),
    }

    if web_search_enabled:
        agents[AgentKind.WEB_RESEARCHER.value] = AgentDefinition(
            description=(
                "Web research specialist. Launch in parallel with the explorers, with a PRD "
                "summary and research questions. Returns best practices, documentation and "
                "prior art with source URLs."
            ),
            prompt=WEB_RESEARCHER_PROMPT,
            tools=WEB_TOOLS,
            model=models.for_kind(AgentKind.WEB_RESEARCHER),
        )

    return agents

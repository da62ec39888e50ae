"""
Claude Agent SDK engine client.

Runs the lead agent with its subagents and yields translated engine events.
The lead agent may only use the Task tool; subagents carry their own tools.

Dependencies: claude_agent_sdk, prd_reviewer.boundary.agent_engine.sdk_translator
System role: Execution engine adapter for review runs
"""

import logging
import os
from dataclasses import dataclass, field
from typing import AsyncIterator

from claude_agent_sdk import ClaudeAgentOptions, query

from prd_reviewer.boundary.agent_engine.sdk_translator import translate_message
from prd_reviewer.configs.agents import AgentSettings
from prd_reviewer.core.agentic_system.review_agents.definitions import (
    build_agent_definitions,
    resolve_model_id,
)
from prd_reviewer.models.agents import AgentModels
from prd_reviewer.models.engine_events import EngineEvent
from prd_reviewer.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineRequest:
    """Everything the engine needs for one review run."""

    prompt: str
    repo_paths: list[str]
    models: AgentModels = field(default_factory=AgentModels)
    web_search_enabled: bool = False


class ClaudeReviewEngine:
    """Review engine backed by claude_agent_sdk.query."""

    def __init__(self, settings: AgentSettings) -> None:
        """
        Initialize engine client.

        Args:
            settings: Agent settings with model choices, turn limit and API key
        """
        self.settings = settings

    @property
    def models(self) -> AgentModels:
        return AgentModels(
            lead=self.settings.lead_agent_model,
            explorer=self.settings.explorer_agent_model,
            senior_dev=self.settings.senior_dev_agent_model,
        )

    def _build_options(self, request: EngineRequest) -> ClaudeAgentOptions:
        env: dict[str, str] = {}
        if self.settings.anthropic_api_key:
            env["ANTHROPIC_API_KEY"] = self.settings.anthropic_api_key

        return ClaudeAgentOptions(
            allowed_tools=["Task"],
            permission_mode="bypassPermissions",
            model=resolve_model_id(request.models.lead),
            agents=build_agent_definitions(request.models, request.web_search_enabled),
            max_turns=self.settings.max_turns,
            add_dirs=list(request.repo_paths),
            cwd=request.repo_paths[0] if request.repo_paths else os.getcwd(),
            env=env,
        )

    async def stream(self, request: EngineRequest) -> AsyncIterator[EngineEvent]:
        """
        Run the lead agent and yield engine events as messages arrive.

        Args:
            request: Prompt, repositories and model selection

        Yields:
            EngineEvent: Translated events in arrival order
        """
        options = self._build_options(request)
        log_with_context(
            logger,
            logging.INFO,
            "Starting agent engine",
            lead_model=options.model,
            agents=list(options.agents or {}),
            repo_paths=request.repo_paths,
            web_search=request.web_search_enabled,
        )

        async for message in query(prompt=request.prompt, options=options):
            for event in translate_message(message):
                yield event

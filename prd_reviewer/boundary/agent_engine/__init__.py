"""Agent execution engine adapter."""

from prd_reviewer.boundary.agent_engine.engine_client import ClaudeReviewEngine, EngineRequest

__all__ = ["ClaudeReviewEngine", "EngineRequest"]

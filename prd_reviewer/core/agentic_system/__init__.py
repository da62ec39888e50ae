"""Agentic review pipeline: lead agent, subagents and the run loop."""

"""
Translation of Claude Agent SDK messages into engine events.

Every SDK message is converted on arrival; nothing past this module touches
SDK classes. Assistant messages yield their content blocks in order followed
by exactly one UsageReported (zero usage when the SDK supplies none).

Dependencies: claude_agent_sdk, prd_reviewer.models.engine_events
System role: Anti-corruption layer between the agent SDK and progress inference
"""

import logging
from typing import Any, Mapping

from claude_agent_sdk import (
    AssistantMessage,
    ResultMessage,
    SystemMessage,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
    UserMessage,
)

from prd_reviewer.core.progress.usage_accumulator import usage_from_engine
from prd_reviewer.models.engine_events import (
    ControllerText,
    DelegationInvoked,
    EngineEvent,
    ResultDelivered,
    SessionStarted,
    TerminalFailure,
    TerminalSuccess,
    ToolInvoked,
    UsageReported,
)
from prd_reviewer.models.usage import ModelUsageData
from prd_reviewer.observability.log_utils import safe_log_value

logger = logging.getLogger(__name__)

DELEGATION_TOOL = "Task"

# Model usage arrives camelCase from the CLI; accept snake_case too.
_MODEL_USAGE_FIELDS = {
    "input_tokens": ("inputTokens", "input_tokens"),
    "output_tokens": ("outputTokens", "output_tokens"),
    "cache_read_tokens": ("cacheReadInputTokens", "cache_read_input_tokens"),
    "cache_creation_tokens": ("cacheCreationInputTokens", "cache_creation_input_tokens"),
    "cost_usd": ("costUSD", "cost_usd"),
    "context_window": ("contextWindow", "context_window"),
}


def _first_present(data: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return 0


def parse_model_usage(raw: Any) -> dict[str, ModelUsageData]:
    """Per-model accounting from a result message; malformed entries are skipped."""
    if not isinstance(raw, Mapping):
        return {}
    breakdown: dict[str, ModelUsageData] = {}
    for model_name, data in raw.items():
        if not isinstance(data, Mapping):
            continue
        values = {field: _first_present(data, keys) for field, keys in _MODEL_USAGE_FIELDS.items()}
        try:
            breakdown[str(model_name)] = ModelUsageData(
                input_tokens=max(int(values["input_tokens"]), 0),
                output_tokens=max(int(values["output_tokens"]), 0),
                cache_read_tokens=max(int(values["cache_read_tokens"]), 0),
                cache_creation_tokens=max(int(values["cache_creation_tokens"]), 0),
                cost_usd=float(values["cost_usd"]),
                context_window=int(values["context_window"]),
            )
        except (TypeError, ValueError):
            logger.warning("Skipping malformed model usage", extra={"model": str(model_name)})
    return breakdown


def _translate_assistant(message: AssistantMessage) -> list[EngineEvent]:
    parent_id = message.parent_tool_use_id
    events: list[EngineEvent] = []

    for block in message.content:
        if isinstance(block, TextBlock):
            if parent_id is None:
                logger.debug(f"Lead agent text: {safe_log_value(block.text, max_length=200)}")
                events.append(ControllerText(text=block.text))
        elif isinstance(block, ToolUseBlock):
            tool_input = block.input if isinstance(block.input, dict) else {}
            if block.name == DELEGATION_TOOL:
                events.append(
                    DelegationInvoked(
                        correlation_id=block.id,
                        agent_type=str(tool_input.get("subagent_type") or "unknown"),
                        description=str(tool_input.get("description") or ""),
                    )
                )
            elif parent_id is not None:
                events.append(ToolInvoked(parent_id=parent_id, tool=block.name, tool_input=tool_input))

    events.append(UsageReported(parent_id=parent_id, usage=usage_from_engine(getattr(message, "usage", None))))
    return events


def _translate_user(message: UserMessage) -> list[EngineEvent]:
    if isinstance(message.content, str):
        return []
    return [
        ResultDelivered(correlation_id=block.tool_use_id)
        for block in message.content
        if isinstance(block, ToolResultBlock) and block.tool_use_id
    ]


def _translate_result(message: ResultMessage) -> EngineEvent:
    if message.subtype == "success" and not message.is_error:
        return TerminalSuccess(
            result=message.result or "",
            total_cost_usd=message.total_cost_usd or 0.0,
            duration_api_ms=message.duration_api_ms or 0,
            num_turns=message.num_turns or 0,
            model_usage=parse_model_usage(getattr(message, "model_usage", None)),
        )

    errors = getattr(message, "errors", None)
    if not isinstance(errors, list):
        errors = [message.result] if message.result else []
    return TerminalFailure(
        subtype=message.subtype,
        errors=[str(error) for error in errors],
        total_cost_usd=message.total_cost_usd or 0.0,
    )


def translate_message(message: Any) -> list[EngineEvent]:
    """
    Convert one SDK message into zero or more engine events.

    Args:
        message: Message yielded by claude_agent_sdk.query

    Returns:
        list[EngineEvent]: Events in the order they occurred within the message
    """
    if isinstance(message, AssistantMessage):
        return _translate_assistant(message)
    if isinstance(message, UserMessage):
        return _translate_user(message)
    if isinstance(message, ResultMessage):
        return [_translate_result(message)]
    if isinstance(message, SystemMessage):
        if message.subtype == "init":
            return [SessionStarted(session_id=message.data.get("session_id"))]
        return []

    logger.debug(f"Ignoring engine message: {type(message).__name__}")
    return []

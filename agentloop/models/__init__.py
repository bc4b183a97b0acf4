"""Models Package - domain models of the agent runtime."""

from agentloop.models.domain import (
    MAX_STEPS_REASON,
    AgentConfig,
    AgentStats,
    Conversation,
    GatewayRequest,
    ModelResponse,
    ModelTurn,
    RegisteredTool,
    RunResult,
    ToolCall,
    ToolDefinition,
    ToolResult,
    ToolResultTurn,
    Turn,
    UserTurn,
    format_user_message,
)

__all__ = [
    # Tools
    "ToolDefinition",
    "RegisteredTool",
    "ToolCall",
    "ToolResult",
    # Conversation
    "UserTurn",
    "ModelTurn",
    "ToolResultTurn",
    "Turn",
    "Conversation",
    "format_user_message",
    # Gateway
    "GatewayRequest",
    "ModelResponse",
    # Agents
    "AgentConfig",
    "AgentStats",
    "RunResult",
    "MAX_STEPS_REASON",
]

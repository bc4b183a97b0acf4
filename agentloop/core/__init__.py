"""
Core module for agentloop.

This module contains configuration and exceptions.
"""

from agentloop.core.config import Settings, get_settings
from agentloop.core.exceptions import (
    AgentLoopException,
    AuthenticationError,
    CompositionError,
    DuplicateToolError,
    ErrorCode,
    FanOutError,
    GatewayError,
    PipelineStageError,
    RateLimitError,
    StepBudgetExceeded,
    ToolExecutionError,
    ToolValidationError,
    UnknownToolError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "ErrorCode",
    "AgentLoopException",
    "GatewayError",
    "AuthenticationError",
    "RateLimitError",
    "ToolExecutionError",
    "UnknownToolError",
    "ToolValidationError",
    "DuplicateToolError",
    "StepBudgetExceeded",
    "CompositionError",
    "PipelineStageError",
    "FanOutError",
]

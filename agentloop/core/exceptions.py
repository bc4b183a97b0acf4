"""
Custom exceptions for agentloop.

This module provides the exception hierarchy for the agent runtime. All
exceptions inherit from AgentLoopException and carry an error code for
consistent handling and logging.

Two families exist:
- Tool-side errors (ToolExecutionError and subclasses) are never raised out
  of an agent run. The executor converts them into error payloads that are
  fed back to the model.
- Environment errors (GatewayError, StepBudgetExceeded, CompositionError)
  surface to the calling code.
"""

from enum import Enum
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================


class ErrorCode(str, Enum):
    """
    Error codes for agentloop exceptions.

    These codes identify error types in logs and in error payloads.
    """

    AGENT_ERROR = "AGENT_ERROR"
    GATEWAY_ERROR = "GATEWAY_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    TOOL_EXECUTION_ERROR = "TOOL_EXECUTION_ERROR"
    UNKNOWN_TOOL = "UNKNOWN_TOOL"
    TOOL_VALIDATION_ERROR = "TOOL_VALIDATION_ERROR"
    DUPLICATE_TOOL = "DUPLICATE_TOOL"
    STEP_BUDGET_EXCEEDED = "STEP_BUDGET_EXCEEDED"
    COMPOSITION_ERROR = "COMPOSITION_ERROR"


# =============================================================================
# Base Exception
# =============================================================================


class AgentLoopException(Exception):
    """
    Base exception for all agentloop errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str = ErrorCode.AGENT_ERROR,
        **kwargs: Any,
    ) -> None:
        """
        Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# Gateway Errors
# =============================================================================


class GatewayError(AgentLoopException):
    """
    Exception for model gateway failures (network, quota, bad responses).

    Gateway errors are fatal to the enclosing agent run: they propagate out
    of Agent.run() and the caller decides whether to retry the session.

    Attributes:
        gateway: Name of the gateway (e.g., "gemini", "fake").
        status_code: HTTP status code from the vendor API (if applicable).
    """

    def __init__(
        self,
        message: str,
        gateway: str,
        status_code: int | None = None,
        error_code: str = ErrorCode.GATEWAY_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.gateway = gateway
        self.status_code = status_code


class AuthenticationError(GatewayError):
    """Raised when the gateway rejects the configured credentials."""

    def __init__(
        self,
        message: str,
        gateway: str,
        status_code: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            gateway=gateway,
            status_code=status_code,
            error_code=ErrorCode.AUTHENTICATION_ERROR,
            **kwargs,
        )


class RateLimitError(GatewayError):
    """
    Raised when the gateway reports quota or rate limit exhaustion.

    Attributes:
        retry_after: Seconds until the limit resets, when the vendor says so.
    """

    def __init__(
        self,
        message: str,
        gateway: str,
        retry_after: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            gateway=gateway,
            status_code=429,
            error_code=ErrorCode.RATE_LIMIT_ERROR,
            **kwargs,
        )
        self.retry_after = retry_after


# =============================================================================
# Tool Errors
# =============================================================================


class ToolExecutionError(AgentLoopException):
    """
    Exception for tool execution failures.

    Tool implementations may raise this (or any exception) to report a
    failure. The executor turns it into an error payload for the model.

    Attributes:
        tool_name: Name of the tool that failed.
        tool_call_id: ID of the tool call (for correlation).
    """

    def __init__(
        self,
        message: str,
        tool_name: str | None = None,
        tool_call_id: str | None = None,
        error_code: str = ErrorCode.TOOL_EXECUTION_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.tool_name = tool_name
        self.tool_call_id = tool_call_id


class UnknownToolError(ToolExecutionError):
    """Raised when a tool name is not present in the registry."""

    def __init__(self, tool_name: str, available: list[str] | None = None) -> None:
        self.available = list(available or [])
        message = f"Unknown tool: {tool_name}"
        if self.available:
            message += f". Available: {', '.join(self.available)}"
        super().__init__(
            message, tool_name=tool_name, error_code=ErrorCode.UNKNOWN_TOOL
        )


class ToolValidationError(ToolExecutionError):
    """
    Raised when tool arguments fail validation.

    Attributes:
        field: Name of the offending argument, when known.
    """

    def __init__(
        self,
        message: str,
        tool_name: str | None = None,
        field: str | None = None,
    ) -> None:
        super().__init__(
            message, tool_name=tool_name, error_code=ErrorCode.TOOL_VALIDATION_ERROR
        )
        self.field = field


class DuplicateToolError(AgentLoopException):
    """Raised when a tool name is registered twice."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(
            f"Tool already registered: {tool_name}",
            error_code=ErrorCode.DUPLICATE_TOOL,
        )
        self.tool_name = tool_name


# =============================================================================
# Run Errors
# =============================================================================


class StepBudgetExceeded(AgentLoopException):
    """
    Raised on request when an agent run exhausts its step budget.

    Agent.run() reports budget exhaustion as a failed RunResult; this
    exception is only raised by RunResult.raise_for_status() and by
    compositions that treat a failed run as fatal.

    Attributes:
        steps: Steps taken before the run stopped.
        max_steps: The configured budget.
    """

    def __init__(self, steps: int, max_steps: int, agent_name: str | None = None) -> None:
        who = f"{agent_name}: " if agent_name else ""
        super().__init__(
            f"{who}max steps ({max_steps}) reached after {steps} steps",
            error_code=ErrorCode.STEP_BUDGET_EXCEEDED,
        )
        self.steps = steps
        self.max_steps = max_steps
        self.agent_name = agent_name


# =============================================================================
# Composition Errors
# =============================================================================


class CompositionError(AgentLoopException):
    """Base exception for multi-agent composition failures."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, ErrorCode.COMPOSITION_ERROR, **kwargs)


class PipelineStageError(CompositionError):
    """
    Raised when a pipeline stage fails; the pipeline is aborted.

    Attributes:
        stage: Name of the failing stage.
    """

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"Pipeline stage '{stage}' failed: {message}", stage=stage)


class FanOutError(CompositionError):
    """
    Raised when a fan-out branch fails and failures are not tolerated.

    Attributes:
        branch: Name of the failing branch.
    """

    def __init__(self, branch: str, message: str) -> None:
        super().__init__(f"Fan-out branch '{branch}' failed: {message}", branch=branch)
